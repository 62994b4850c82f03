from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .errors import BacklogAPIError, BacklogAuthError, BacklogConfigError, BacklogResponseError

logger = logging.getLogger(__name__)


class APIAccessor:
    """
    Thin async wrapper around httpx that manages the OAuth client-credentials
    bearer token for the TI backlog API.

    The token is requested lazily and reused until `expiry_margin` seconds
    before it expires. Concurrent callers share a single token request.
    """

    def __init__(
        self,
        server: str,
        client_id: str,
        client_secret: str,
        *,
        timeout: float = 30.0,
        expiry_margin: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not server:
            raise BacklogConfigError("TI server URL is not configured")
        self.server = server.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.expiry_margin = expiry_margin
        self._clock = clock
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._token_lock = asyncio.Lock()
        self.access_token: Optional[str] = None
        self.expiration: float = 0.0

    @property
    def token_url(self) -> str:
        return f"{self.server}/v1/oauth"

    # PUBLIC_INTERFACE
    def is_token_valid(self) -> bool:
        """Return True when a token is cached and not within the expiry margin."""
        return bool(self.access_token) and self._clock() < self.expiration - self.expiry_margin

    # PUBLIC_INTERFACE
    async def request_access_token(self) -> str:
        """
        Request a new bearer token with the client-credentials grant.

        Raises:
            BacklogAuthError: transport failure, non-200 status or a body without a token.
        """
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            response = await self._client.post(self.token_url, data=data)
        except httpx.HTTPError as exc:
            raise BacklogAuthError(f"Token request failed: {exc}") from exc

        if response.status_code != 200:
            body = _safe_json(response)
            raise BacklogAuthError(
                f"Token request returned HTTP {response.status_code}",
                status_code=response.status_code,
                errors=_extract_errors(body),
                body=body,
            )

        body = _safe_json(response)
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise BacklogAuthError("Token response did not contain an access_token", body=body)

        self.access_token = token
        self.expiration = self._clock() + float(body.get("expires_in") or 0)
        logger.info("Obtained TI access token (expires in %ss)", body.get("expires_in"))
        return token

    async def _ensure_token(self) -> str:
        if self.is_token_valid():
            return self.access_token  # type: ignore[return-value]
        async with self._token_lock:
            # Another caller may have refreshed while we waited on the lock.
            if not self.is_token_valid():
                await self.request_access_token()
            return self.access_token  # type: ignore[return-value]

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        expected_status: int = 200,
    ) -> Any:
        token = await self._ensure_token()
        headers = {"Authorization": f"Bearer {token}"}
        if json is not None:
            logger.debug("%s %s params=%s body=%s", method, url, params, json)
        else:
            logger.debug("%s %s params=%s", method, url, params)

        try:
            response = await self._client.request(method, url, params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise BacklogAPIError(f"Request to TI failed: {exc}") from exc

        body = _safe_json(response)
        logger.debug("%s %s -> %s %s", method, url, response.status_code, body)

        if response.is_error:
            logger.warning("%s %s returned HTTP %s", method, url, response.status_code)
            raise BacklogAPIError(
                f"TI returned HTTP {response.status_code}",
                status_code=response.status_code,
                errors=_extract_errors(body),
                body=body,
            )
        if response.status_code != expected_status:
            logger.warning(
                "%s %s returned HTTP %s, expected %s",
                method,
                url,
                response.status_code,
                expected_status,
            )
        if body is None and response.content:
            raise BacklogResponseError("TI response body is not valid JSON", body=response.text)
        return body if body is not None else {}

    # PUBLIC_INTERFACE
    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, expected_status: int = 200) -> Any:
        """GET `url` with a bearer token and return the decoded JSON body."""
        return await self._request("GET", url, params=params, expected_status=expected_status)

    # PUBLIC_INTERFACE
    async def post(self, url: str, json: Any = None, expected_status: int = 200) -> Any:
        """POST a JSON body to `url` with a bearer token and return the decoded JSON body."""
        return await self._request("POST", url, json=json, expected_status=expected_status)

    # PUBLIC_INTERFACE
    async def delete(self, url: str, expected_status: int = 200) -> Any:
        """DELETE `url` with a bearer token and return the decoded JSON body."""
        return await self._request("DELETE", url, expected_status=expected_status)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _extract_errors(body: Any) -> list:
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        return body["errors"]
    return []
