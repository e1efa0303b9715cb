from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./bookxchange.db"

    # JWT
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # CORS - can be JSON string or comma-separated string
    CORS_ORIGINS: str = '["http://localhost:8080", "http://localhost:5173"]'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Marketplace rules
    PASSWORD_MIN_LENGTH: int = 8
    RECOMMENDATION_LIMIT: int = 4

    model_config = SettingsConfigDict(
        # Load from backend/.env (relative to this file's parent's parent)
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore unknown environment variables (like VITE_*)
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.DATABASE_URL or self.DATABASE_URL.strip() == "":
            raise RuntimeError(
                "DATABASE_URL is empty. Set it in backend/.env, e.g. DATABASE_URL=sqlite:///./bookxchange.db"
            )

        # Never sign production tokens with the placeholder secret
        if self.ENVIRONMENT == "production" and self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
            raise RuntimeError(
                "JWT_SECRET_KEY is still the development placeholder. Set a real secret in backend/.env."
            )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def get_masked_database_url(self) -> str:
        """Return DATABASE_URL with password masked for logging."""
        from urllib.parse import urlparse, urlunparse

        parsed = urlparse(self.DATABASE_URL)
        if not parsed.password:
            return self.DATABASE_URL
        masked_netloc = f"{parsed.username}:***@{parsed.hostname}"
        if parsed.port:
            masked_netloc += f":{parsed.port}"
        return urlunparse((
            parsed.scheme,
            masked_netloc,
            parsed.path,
            parsed.params,
            parsed.query,
            parsed.fragment,
        ))

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS from JSON string or comma-separated string."""
        if not self.CORS_ORIGINS:
            return ["http://localhost:8080", "http://localhost:5173"]

        try:
            # Try parsing as JSON first
            parsed = json.loads(self.CORS_ORIGINS)
            if isinstance(parsed, list):
                return parsed
            # If it's a string, treat as single origin
            return [str(parsed)]
        except (json.JSONDecodeError, TypeError):
            # Fall back to comma-separated string
            origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
            return origins if origins else ["http://localhost:8080", "http://localhost:5173"]


settings = Settings()
