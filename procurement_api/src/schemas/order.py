from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.core.formatting import iso_date


class Confirmation(BaseModel):
    """Schedule confirmation returned by TI for an order line."""
    ti_schedule_line_number: Optional[str] = None
    scheduled_quantity: Optional[float] = None
    estimated_ship_date: Optional[str] = None
    estimated_delivery_date: Optional[str] = None
    estimated_delivery_date_status: Optional[str] = None
    shipped_quantity: Optional[float] = None
    unshipped_quantity: Optional[float] = None
    customer_requested_ship_date: Optional[str] = None


class ApiLog(BaseModel):
    """Record of a write call made to TI for this order."""
    operation_type: str
    timestamp: dt.datetime


class OrderComponent(BaseModel):
    """Ordered line item, stored embedded in the order document."""
    id: str = Field(..., description="Component id, unique within the order")
    name: str = Field(..., description="TI part number")
    quantity: int = Field(0, ge=0)
    unit_price: float = Field(0.0)
    status: str = Field("Pending")
    delivery_date: Optional[str] = Field(None, description="Requested delivery date (YYYY-MM-DD)")
    ti_line_item_number: Optional[str] = Field(None)
    quote_number: Optional[str] = Field(None)
    shipping_date: Optional[str] = Field(None)
    estimated_date_of_arrival: Optional[str] = Field(None)
    carrier: Optional[str] = Field(None, description="Carrier master tracking number")
    k3_code: Optional[str] = Field(None, description="Customer part number")
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)
    moq: int = Field(0, ge=0)
    nq: int = Field(0, ge=0)
    invoice_number: str = Field("")
    invoice_date: str = Field("")
    confirmations: List[Confirmation] = Field(default_factory=list)


class OrderComponentCreate(BaseModel):
    """New order line; ti_price, when given, becomes the unit price."""
    id: Optional[str] = Field(None)
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    unit_price: Optional[float] = Field(None)
    ti_price: Optional[float] = Field(None, description="Quoted TI unit price")
    status: str = Field("Pending")
    delivery_date: Optional[str] = Field(None)
    quote_number: Optional[str] = Field(None)
    k3_code: Optional[str] = Field(None)
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)
    moq: int = Field(0, ge=0)
    nq: int = Field(0, ge=0)

    @field_validator("delivery_date")
    @classmethod
    def check_delivery_date(cls, value: Optional[str]) -> Optional[str]:
        return iso_date(value)


class OrderComponentUpdate(BaseModel):
    """Partial update of an order line."""
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None)
    status: Optional[str] = Field(None)
    delivery_date: Optional[str] = Field(None)
    quote_number: Optional[str] = Field(None)
    shipping_date: Optional[str] = Field(None)
    estimated_date_of_arrival: Optional[str] = Field(None)
    carrier: Optional[str] = Field(None)
    k3_code: Optional[str] = Field(None)
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)
    moq: Optional[int] = Field(None, ge=0)
    nq: Optional[int] = Field(None, ge=0)
    invoice_number: Optional[str] = Field(None)
    invoice_date: Optional[str] = Field(None)

    @field_validator("delivery_date")
    @classmethod
    def check_delivery_date(cls, value: Optional[str]) -> Optional[str]:
        return iso_date(value)


class OrderCreate(BaseModel):
    """Create order payload."""
    date: Optional[dt.date] = Field(None, description="Order date")
    customer: str = Field(..., min_length=1)
    status: str = Field("Pending")
    purchase_order_number: str = Field(..., min_length=1, description="Customer purchase order number")
    quotation_id: Optional[str] = Field(None)
    quote_number: Optional[str] = Field(None)
    components: List[OrderComponentCreate] = Field(default_factory=list)


class OrderRead(BaseModel):
    """Order read model."""
    id: UUID = Field(..., description="Order ID")
    date: Optional[dt.date] = Field(None)
    customer: str = Field(...)
    total_amount: float = Field(...)
    status: Optional[str] = Field(None)
    order_number: Optional[str] = Field(None)
    purchase_order_number: Optional[str] = Field(None)
    ti_order_number: Optional[str] = Field(None)
    quotation_id: Optional[str] = Field(None)
    quote_number: Optional[str] = Field(None)
    components: List[OrderComponent] = Field(default_factory=list)
    api_logs: List[ApiLog] = Field(default_factory=list)
    created_at: dt.datetime = Field(..., description="Created at")
    updated_at: dt.datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    """A page of orders plus the page count."""
    orders: List[OrderRead]
    total_pages: int


class PurchaseOrderNumberUpdate(BaseModel):
    """New customer purchase order number for an unsubmitted order."""
    purchase_order_number: str = Field(..., min_length=1)


class OrderModifyComponent(BaseModel):
    """Requested change to one line of a submitted order."""
    id: str = Field(..., description="Component id in the order")
    name: str = Field(..., min_length=1, description="TI part number")
    quote_number: str = Field(..., min_length=1, description="TI quote the new price comes from")
    quantity: int = Field(..., ge=0)
    delivery_date: str = Field(..., description="Requested delivery date (YYYY-MM-DD)")
    is_deleted: bool = Field(False, description="Cancel this line at TI")

    @field_validator("delivery_date")
    @classmethod
    def check_delivery_date(cls, value: str) -> str:
        normalized = iso_date(value)
        if normalized is None:
            raise ValueError("Delivery date is required")
        return normalized


class OrderModifyRequest(BaseModel):
    """Change request for a submitted order."""
    components: List[OrderModifyComponent] = Field(..., min_length=1)


class OrderSyncResponse(BaseModel):
    """Order after a TI round-trip together with the raw TI response."""
    success: bool = True
    order: OrderRead
    ti_response: Dict[str, Any] = Field(default_factory=dict)
