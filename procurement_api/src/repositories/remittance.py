from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from src.db.models.remittance import RemittanceNotification
from .base import BaseRepository


class RemittanceRepository(BaseRepository):
    """Repository for remittance notifications."""

    async def list_notifications(self, *, search: Optional[str] = None) -> List[RemittanceNotification]:
        stmt = select(RemittanceNotification).order_by(RemittanceNotification.created_at.desc())
        rows = list(await self.scalars(stmt))
        if not search:
            return rows
        needle = search.lower()
        # Invoice numbers are inside the JSON items; match in Python.
        return [
            r for r in rows
            if needle in (r.remittance_number or "").lower()
            or any(needle in str(i.get("invoice_number") or "").lower() for i in (r.items or []))
        ]

    async def get_notification(self, notification_id: UUID) -> Optional[RemittanceNotification]:
        stmt = select(RemittanceNotification).where(RemittanceNotification.id == notification_id)
        return await self.scalar_one_or_none(stmt)
