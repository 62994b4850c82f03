from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Date, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, JSONDocument, TimestampMixin, UUIDPkMixin


class Order(UUIDPkMixin, TimestampMixin, Base):
    """Purchase order placed with TI; line items and upstream call logs are embedded."""
    __tablename__ = "orders"

    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    customer: Mapped[str] = mapped_column(Text, nullable=False)
    total_amount: Mapped[float] = mapped_column(
        Numeric(18, 6, asdecimal=False), nullable=False, default=0.0
    )
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    purchase_order_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ti_order_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    quotation_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quote_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    components: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
    api_logs: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)
