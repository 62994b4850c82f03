from __future__ import annotations

from typing import Any, List, Optional


class BacklogError(Exception):
    """Base class for failures talking to the TI backlog API."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BacklogConfigError(BacklogError):
    """Required upstream configuration (credentials, checkout profile) is missing."""


class BacklogAPIError(BacklogError):
    """
    Non-2xx response or transport failure.

    Attributes:
        status_code: HTTP status returned upstream, None when no response was received.
        errors: the upstream `errors` array when the body carried one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        errors: Optional[List[Any]] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []
        self.body = body


class BacklogAuthError(BacklogAPIError):
    """The OAuth token request failed."""


class BacklogResponseError(BacklogError):
    """A response lacked the structure the caller relies on."""

    def __init__(self, message: str, *, body: Any = None) -> None:
        super().__init__(message)
        self.body = body
