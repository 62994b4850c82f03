from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import get_settings

logger = logging.getLogger(__name__)

_ENGINE: AsyncEngine | None = None
_SESSION_MAKER: async_sessionmaker[AsyncSession] | None = None


def _session_maker() -> async_sessionmaker[AsyncSession]:
    global _ENGINE, _SESSION_MAKER
    if _SESSION_MAKER is None:
        settings = get_settings()
        _ENGINE = create_async_engine(settings.async_database_url, **settings.engine_options())
        _SESSION_MAKER = async_sessionmaker(bind=_ENGINE, expire_on_commit=False, autoflush=False)
        logger.info("Database engine created for %s", _ENGINE.url.render_as_string(hide_password=True))
    return _SESSION_MAKER


# PUBLIC_INTERFACE
def get_engine() -> AsyncEngine:
    """Return the process-wide AsyncEngine, creating it on first use."""
    _session_maker()
    assert _ENGINE is not None
    return _ENGINE


# PUBLIC_INTERFACE
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session; uncommitted work is rolled back on error."""
    async with _session_maker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# PUBLIC_INTERFACE
async def dispose_engine() -> None:
    """Dispose of the engine on application shutdown."""
    global _ENGINE, _SESSION_MAKER
    if _ENGINE is not None:
        await _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
