from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .order import OrderComponent


class LogisticsInfo(BaseModel):
    """Shipment overview of one order."""
    order_id: Optional[str] = Field(None, description="Customer order number")
    customer: str
    shipping_date: str = Field("", description="First known shipping date among the lines")
    estimated_delivery_date: str = Field("", description="Latest estimated arrival among the lines")
    status: Optional[str] = None
    ti_order_number: Optional[str] = None


class LogisticsListResponse(BaseModel):
    logistics_info: List[LogisticsInfo]
    total_pages: int


class LogisticsRefreshResponse(BaseModel):
    """Components after merging the TI advance shipment notice."""
    success: bool = True
    components: List[OrderComponent]
    ti_response: Dict[str, Any] = Field(default_factory=dict)


class BulkRefreshRequest(BaseModel):
    """Orders to refresh; every submitted order when omitted."""
    order_numbers: Optional[List[str]] = Field(None)


class BulkRefreshFailure(BaseModel):
    order_number: str
    error: str


class BulkRefreshResponse(BaseModel):
    refreshed: List[str] = Field(default_factory=list)
    failed: List[BulkRefreshFailure] = Field(default_factory=list)
