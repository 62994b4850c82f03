from __future__ import annotations

import re
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_SQLITE_SCHEME = re.compile(r"^sqlite(\+\w+)?://")
_POSTGRES_SCHEME = re.compile(r"^postgres(ql)?(\+\w+)?://")


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


# PUBLIC_INTERFACE
def to_async_url(url: str) -> str:
    """Rewrite a database URL to the async driver: aiosqlite or asyncpg."""
    if is_sqlite_url(url):
        return _SQLITE_SCHEME.sub("sqlite+aiosqlite://", url)
    return _POSTGRES_SCHEME.sub("postgresql+asyncpg://", url)


# PUBLIC_INTERFACE
def to_sync_url(url: str) -> str:
    """Strip any driver marker so Alembic offline mode gets a plain dialect URL."""
    if is_sqlite_url(url):
        return _SQLITE_SCHEME.sub("sqlite://", url)
    return _POSTGRES_SCHEME.sub("postgresql://", url)


class Settings(BaseSettings):
    """
    Database settings for the procurement store.

    DATABASE_URL wins when set. Otherwise POSTGRES_URL, then a URL assembled
    from POSTGRES_USER / POSTGRES_PASSWORD / POSTGRES_DB / POSTGRES_HOST / POSTGRES_PORT.
    """

    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL, e.g. sqlite+aiosqlite:///./procurement.db",
    )
    POSTGRES_URL: Optional[str] = Field(default=None, description="Full PostgreSQL URL")
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_PORT: Optional[int] = 5432
    POSTGRES_HOST: Optional[str] = "localhost"

    SQL_ECHO: bool = Field(default=False, description="Echo SQL statements")
    DB_POOL_SIZE: int = Field(default=5, ge=1, description="PostgreSQL connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_RECYCLE_SECONDS: int = Field(default=1800, ge=-1)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_URL:
            return self.POSTGRES_URL
        if not all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_DB]):
            raise ValueError(
                "Database configuration missing: set DATABASE_URL, POSTGRES_URL or "
                "POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB."
            )
        host = self.POSTGRES_HOST or "localhost"
        port = self.POSTGRES_PORT or 5432
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{host}:{port}/{self.POSTGRES_DB}"

    @property
    def async_database_url(self) -> str:
        return to_async_url(self.database_url)

    @property
    def sync_database_url(self) -> str:
        return to_sync_url(self.database_url)

    @property
    def is_sqlite(self) -> bool:
        return is_sqlite_url(self.database_url)

    # PUBLIC_INTERFACE
    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for create_async_engine. SQLite gets no pool sizing."""
        options: Dict[str, Any] = {"echo": self.SQL_ECHO}
        if self.is_sqlite:
            return options
        options.update(
            pool_pre_ping=True,
            pool_size=self.DB_POOL_SIZE,
            max_overflow=self.DB_MAX_OVERFLOW,
            pool_recycle=self.DB_POOL_RECYCLE_SECONDS,
        )
        return options


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Build database settings from the environment."""
    return Settings()
