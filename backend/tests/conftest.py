"""Pytest configuration for backend tests."""
import sys
import os
from datetime import datetime, timedelta
from pathlib import Path
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time, so point them at a throwaway database
# before anything from app is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"

# Import database components
from app.database import Base, get_db

# Import the entire models module to ensure all models are registered with Base.metadata
# This must happen before create_all() so that all table definitions are available
import app.models  # noqa: F401
from app.models import BookCondition, Listing, ListingStatus, User, UserRole
from app.core import security
from app.core.auth import CallerIdentity


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cheap bcrypt work factor so password hashing doesn't dominate test time."""
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope="function")
def engine():
    """
    A fresh in-memory SQLite database per test.

    StaticPool keeps the single connection alive so every session (including
    the ones FastAPI opens inside TestClient) sees the same database.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Debug assertion: verify tables are registered
    if not Base.metadata.tables:
        raise RuntimeError(
            "No tables registered in Base.metadata. "
            "Did you import app.models? All model classes must be imported before create_all()."
        )

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture(scope="function")
def db(session_factory) -> Session:
    """Database session for each test."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """TestClient whose requests use the per-test database."""
    from fastapi.testclient import TestClient
    from app.main import app

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db: Session):
    """Factory: persist a user and return it."""
    counter = {"n": 0}

    def _make(name: str = None, role: UserRole = UserRole.USER, password: str = "password123") -> User:
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        user = User(
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{counter['n']}@campus.edu",
            password_hash=security.get_password_hash(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def seller(make_user) -> User:
    return make_user("Riya Sharma")


@pytest.fixture
def buyer(make_user) -> User:
    return make_user("Arjun Mehta")


@pytest.fixture
def other_buyer(make_user) -> User:
    return make_user("Priya Nair")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("Admin User", role=UserRole.ADMIN)


def caller_for(user: User) -> CallerIdentity:
    return CallerIdentity.from_user(user)


def auth_headers(user: User) -> dict:
    token = security.create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


def make_listing(**overrides) -> Listing:
    """Build a detached Listing for the pure search/recommendation tests."""
    defaults = dict(
        id=overrides.pop("id", None) or f"book-{make_listing.counter}",
        title="Engineering Mathematics Vol. 1",
        subject="Mathematics",
        semester="Semester 1",
        price=320.0,
        condition=BookCondition.GOOD,
        description="Good condition, no highlights.",
        image="",
        seller_id="seller-1",
        seller_name="Riya Sharma",
        status=ListingStatus.AVAILABLE,
        requested_by=None,
        requested_by_name=None,
        posted_at=datetime(2026, 1, 1) + timedelta(hours=make_listing.counter),
        updated_at=datetime(2026, 1, 1),
    )
    make_listing.counter += 1
    defaults.update(overrides)
    return Listing(**defaults)


make_listing.counter = 0
