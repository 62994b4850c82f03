"""Persistence for quotations, orders and remittance notifications."""

from . import models as models  # noqa: F401
from .base import Base
from .config import Settings, get_settings
from .session import dispose_engine, get_async_session, get_engine

__all__ = ["Base", "Settings", "get_settings", "get_engine", "get_async_session", "dispose_engine", "models"]
