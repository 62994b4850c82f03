from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Date, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, JSONDocument, TimestampMixin, UUIDPkMixin


class RemittanceNotification(UUIDPkMixin, TimestampMixin, Base):
    """Payment remittance notification with embedded invoice payment items."""
    __tablename__ = "remittance_notifications"

    remittance_number: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="USD")
    payment_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    items: Mapped[list] = mapped_column(JSONDocument, nullable=False, default=list)

    @property
    def total_amount(self) -> float:
        return sum(float(item.get("amount") or 0) for item in (self.items or []))
