"""
Core application utilities for settings, logging and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with request correlation ids
- Dependency helpers (DB session, TI backlog client, webhook Basic-Auth)
"""
