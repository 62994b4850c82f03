from __future__ import annotations

from typing import Any, Optional


class ProcurementError(Exception):
    """Base domain error raised by services; carries an HTTP status for the API layer."""

    status_code: int = 400
    error_type: str = "procurement_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(ProcurementError):
    """Requested document or item does not exist."""

    status_code = 404
    error_type = "not_found"


class InvalidStateError(ProcurementError):
    """Operation is not allowed in the document's current state."""

    status_code = 400
    error_type = "invalid_state"


class ValidationFailedError(ProcurementError):
    """Request is well-formed but fails a business rule."""

    status_code = 400
    error_type = "validation_failed"
