from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient
from src.core.security import WEBHOOK_REALM, verify_webhook_credentials
from src.core.settings import AppSettings, get_app_settings
from src.db.session import get_async_session

logger = logging.getLogger(__name__)

# auto_error=False so missing credentials get the same 401 + realm as wrong ones
webhook_basic = HTTPBasic(auto_error=False, realm="Secure Area")


# PUBLIC_INTERFACE
async def get_db_session(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncSession:
    """Return the request-scoped AsyncSession (closed by get_async_session)."""
    return session


# PUBLIC_INTERFACE
def get_settings_dep() -> AppSettings:
    """Application settings as a dependency (overridable in tests)."""
    return get_app_settings()


# PUBLIC_INTERFACE
def get_backlog_client(request: Request) -> TIBacklogClient:
    """
    Return the application-wide TI backlog client, creating it on first use.

    One client is shared by all requests so the bearer token and connection
    pool are reused. It is closed on application shutdown.
    """
    client: Optional[TIBacklogClient] = getattr(request.app.state, "backlog_client", None)
    if client is None:
        client = TIBacklogClient.from_settings(get_app_settings())
        request.app.state.backlog_client = client
        logger.info("Initialized TI backlog client for %s", client.api.server)
    return client


# PUBLIC_INTERFACE
async def require_webhook_auth(
    credentials: Optional[HTTPBasicCredentials] = Depends(webhook_basic),
    settings: AppSettings = Depends(get_settings_dep),
) -> str:
    """
    Require HTTP Basic credentials matching the configured webhook user.

    Raises:
        HTTPException: 401 with a `WWW-Authenticate` challenge.
    Returns:
        str: the authenticated username.
    """
    if credentials is None or not verify_webhook_credentials(
        credentials.username, credentials.password, settings
    ):
        logger.warning("Rejected webhook call with invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": WEBHOOK_REALM},
        )
    return credentials.username
