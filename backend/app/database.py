from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings
import logging
import time

logger = logging.getLogger(__name__)

logger.info("BOOKXCHANGE DATABASE_URL = %s", settings.get_masked_database_url())

# SQLite connections are shared across FastAPI's threadpool
connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # Verify connections before using them
    echo=False,  # Keep echo off - we'll log slow queries separately
    connect_args=connect_args,
)

SLOW_QUERY_THRESHOLD_MS = 200.0


def install_slow_query_logging(target_engine) -> None:
    """Log statements slower than SLOW_QUERY_THRESHOLD_MS on the given engine."""

    @event.listens_for(target_engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Store query start time before execution."""
        context._query_start_time = time.perf_counter()

    @event.listens_for(target_engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        """Log slow queries after execution."""
        if hasattr(context, "_query_start_time"):
            elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
            if elapsed_ms >= SLOW_QUERY_THRESHOLD_MS:
                # Get first line of statement for brevity
                statement_first_line = statement.split("\n")[0].strip()[:100]
                logger.warning("SLOW_QUERY: %.2fms - %s", elapsed_ms, statement_first_line)


# Add slow query logging (DEBUG mode only)
if settings.DEBUG:
    install_slow_query_logging(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Create any missing tables.

    create_all() only creates tables that don't exist; it will NOT add
    missing columns to existing tables.

    This imports all models so that Base.metadata includes all table definitions.
    """
    # Import all models to ensure they're registered with Base.metadata
    from app import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
