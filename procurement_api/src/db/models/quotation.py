from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Date, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, JSONDocument, TimestampMixin, UUIDPkMixin


class Quotation(UUIDPkMixin, TimestampMixin, Base):
    """Customer quotation; components are embedded as a JSON array."""
    __tablename__ = "quotations"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    customer: Mapped[str] = mapped_column(Text, nullable=False)
    total_amount: Mapped[float] = mapped_column(
        Numeric(18, 6, asdecimal=False), nullable=False, default=0.0
    )
    quote_status: Mapped[str] = mapped_column(Text, nullable=False, default="OnPending")
    quote_number: Mapped[str] = mapped_column(Text, nullable=False, default="", index=True)
    customer_quote_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    quote_start_date: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quote_end_date: Mapped[str] = mapped_column(Text, nullable=False, default="")
    components: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
