from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache


WEAK_SECRET_KEYS = frozenset(
    {
        "secret",
        "changeme",
        "password",
        "development",
        "test",
        "development-secret-key-change-in-production",
    }
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./oauth_registry.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Session
    SECRET_KEY: str = "development-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    SESSION_COOKIE_NAME: str = "session"

    # CORS
    FRONTEND_URL: str = "http://localhost:5173"

    # Client logos
    LOGO_UPLOAD_DIR: str = "./static/client/logo"
    LOGO_BASE_URL: str = "http://localhost:8000/static/client/logo/"
    LOGO_MOUNT_PATH: str = "/static/client/logo"
    DEFAULT_LOGO_FILENAME: str = "default.png"
    MAX_LOGO_BYTES: int = 1024 * 1024
    ALLOWED_LOGO_TYPES: tuple[str, ...] = (
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/webp",
    )

    @field_validator("LOGO_BASE_URL")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """urljoin drops the last path segment unless the base ends in '/'."""
        return v if v.endswith("/") else v + "/"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool = True
    SQL_ECHO: bool = False

    @model_validator(mode="after")
    def check_production_secret(self) -> "Settings":
        """Refuse to start in production with a guessable signing key."""
        if self.ENVIRONMENT == "production":
            if self.SECRET_KEY in WEAK_SECRET_KEYS:
                raise ValueError("SECRET_KEY is a known weak value")
            if len(self.SECRET_KEY) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production")
        return self

    @property
    def sqlalchemy_echo(self) -> bool:
        """Never echo SQL outside development."""
        return self.SQL_ECHO and self.ENVIRONMENT == "development"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
