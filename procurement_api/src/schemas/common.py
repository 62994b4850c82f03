from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ExportFormat(str, Enum):
    json = "json"
    csv = "csv"
    xlsx = "xlsx"
    pdf = "pdf"


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class ExportRequest(BaseModel):
    """Ids of the quotations or orders to export."""
    ids: List[UUID] = Field(..., min_length=1, description="Document ids to include in the export")


class ErrorInfo(BaseModel):
    type: str = Field(..., description="Machine-readable error code, e.g. not_found or upstream_error")
    message: str
    details: Optional[Any] = Field(default=None, description="Validation issues or the upstream error body")


# PUBLIC_INTERFACE
class ErrorResponse(BaseModel):
    """Error envelope returned by every exception handler."""
    status: int
    error: ErrorInfo
    correlation_id: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    timestamp: datetime = Field(..., description="UTC time the error was produced")
