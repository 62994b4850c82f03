from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class QuotationComponent(BaseModel):
    """Quoted line item, stored embedded in the quotation document."""
    id: str = Field(..., description="Component id, unique within the quotation")
    name: str = Field(..., min_length=1, description="TI part number")
    quantity: int = Field(..., ge=0, description="Requested quantity")
    unit_price: float = Field(..., ge=0, description="Price offered to the customer")
    ti_price: float = Field(0.0, description="Unit price quoted by TI")
    status: str = Field("Pending", description="Line status as reported by TI")
    delivery_date: str = Field("", description="Requested delivery date")
    moq: int = Field(0, ge=0, description="Minimum order quantity")
    nq: int = Field(0, ge=0, description="Order quantity increment")
    k3_code: Optional[str] = Field(None, description="Customer internal part number")
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)


class QuotationComponentCreate(BaseModel):
    """New quoted line item; the id is assigned by the server when omitted."""
    id: Optional[str] = Field(None)
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    ti_price: float = Field(0.0)
    status: str = Field("Pending")
    delivery_date: str = Field("")
    moq: int = Field(0, ge=0)
    nq: int = Field(0, ge=0)
    k3_code: Optional[str] = Field(None)
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)


class QuotationComponentUpdate(BaseModel):
    """Partial update of a quoted line item."""
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    ti_price: Optional[float] = Field(None)
    status: Optional[str] = Field(None)
    delivery_date: Optional[str] = Field(None)
    moq: Optional[int] = Field(None, ge=0)
    nq: Optional[int] = Field(None, ge=0)
    k3_code: Optional[str] = Field(None)
    type: Optional[str] = Field(None)
    description: Optional[str] = Field(None)


class QuotationCreate(BaseModel):
    """Create quotation payload."""
    date: dt.date = Field(..., description="Quotation date")
    customer: str = Field(..., min_length=1, description="Customer name")
    quote_status: str = Field("OnPending")
    quote_number: str = Field("", description="TI quote number, empty until sent")
    customer_quote_number: Optional[str] = Field(None, description="Defaults to the quotation id")
    quote_start_date: str = Field("")
    quote_end_date: str = Field("")
    components: List[QuotationComponentCreate] = Field(default_factory=list)


class QuotationRead(BaseModel):
    """Quotation read model."""
    id: UUID = Field(..., description="Quotation ID")
    date: dt.date = Field(...)
    customer: str = Field(...)
    total_amount: float = Field(..., description="Sum of quantity x unit price")
    quote_status: str = Field(...)
    quote_number: str = Field(...)
    customer_quote_number: Optional[str] = Field(None)
    quote_start_date: str = Field("")
    quote_end_date: str = Field("")
    components: List[QuotationComponent] = Field(default_factory=list)
    created_at: dt.datetime = Field(..., description="Created at")
    updated_at: dt.datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class QuotationListResponse(BaseModel):
    """A page of quotations plus the total match count."""
    quotations: List[QuotationRead]
    total_quotations: int


class QuotationSyncResponse(BaseModel):
    """Quotation after a TI round-trip together with the raw TI response."""
    message: Optional[str] = None
    quotation: QuotationRead
    ti_response: Dict[str, Any] = Field(default_factory=dict)


class MoqNqUpdate(BaseModel):
    """Quote details entered from the TI quote confirmation."""
    quote_number: str = Field(..., description="TI quote number")
    quote_start_date: str = Field("")
    quote_end_date: str = Field("")
    components: List[QuotationComponent] = Field(...)
