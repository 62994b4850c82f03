from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RemittanceItem(BaseModel):
    """Payment of one invoice."""
    invoice_number: str = Field(..., min_length=1, description="TI financial document number")
    amount: float = Field(..., description="Amount paid")


class RemittanceCreate(BaseModel):
    """Create remittance notification payload."""
    remittance_number: str = Field(..., min_length=1)
    currency: str = Field("USD")
    payment_date: Optional[dt.date] = Field(None)
    items: List[RemittanceItem] = Field(default_factory=list)


class RemittanceRead(BaseModel):
    """Remittance notification read model."""
    id: UUID
    remittance_number: str
    currency: str
    payment_date: Optional[dt.date] = None
    items: List[RemittanceItem] = Field(default_factory=list)
    total_amount: float = Field(..., description="Sum of item amounts")
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class RemittanceSendRequest(BaseModel):
    """Single-invoice remittance advice sent straight to TI."""
    remittance_number: str = Field(..., min_length=1)
    invoice_number: str = Field(..., min_length=1)
    amount: float = Field(...)
    currency: str = Field("USD")


class RemittanceSendResponse(BaseModel):
    success: bool = True
    response: Any = None
