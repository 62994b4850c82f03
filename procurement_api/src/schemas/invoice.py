from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class InvoiceComponent(BaseModel):
    name: str
    quantity: int = 0
    unit_price: float = 0.0
    invoice_number: str = ""
    invoice_date: str = ""


class InvoiceInfo(BaseModel):
    """Invoice view of one order."""
    order_id: Optional[str] = Field(None, description="Customer purchase order number")
    customer: str
    components: List[InvoiceComponent] = Field(default_factory=list)


class InvoiceListResponse(BaseModel):
    invoice_info: List[InvoiceInfo]
    total_pages: int
