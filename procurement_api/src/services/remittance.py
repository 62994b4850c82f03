from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient, TIBacklogRemittance
from src.db.models.remittance import RemittanceNotification
from src.repositories.remittance import RemittanceRepository
from src.schemas.remittance import RemittanceCreate, RemittanceItem, RemittanceSendRequest
from .base import BaseService
from .errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


class RemittanceService(BaseService):
    """Remittance notifications and remittance advice sent to TI."""

    def __init__(self, session: AsyncSession, backlog: Optional[TIBacklogClient] = None) -> None:
        super().__init__(session, backlog)
        self.repo = RemittanceRepository(session)

    async def list_notifications(self, *, search: Optional[str] = None) -> List[RemittanceNotification]:
        return await self.repo.list_notifications(search=search)

    async def get_notification(self, notification_id: UUID) -> RemittanceNotification:
        row = await self.repo.get_notification(notification_id)
        if row is None:
            raise NotFoundError("Remittance notification not found", {"id": str(notification_id)})
        return row

    async def create_notification(self, payload: RemittanceCreate) -> RemittanceNotification:
        row = RemittanceNotification(
            remittance_number=payload.remittance_number,
            currency=payload.currency,
            payment_date=payload.payment_date,
        )
        self.repo.replace_document(row, "items", self.dump_components(payload.items))
        row = await self.repo.save(row)
        logger.info("Created remittance notification %s", row.remittance_number)
        return row

    async def delete_notification(self, notification_id: UUID) -> None:
        row = await self.get_notification(notification_id)
        await self.repo.delete(row)

    @staticmethod
    def _check_index(row: RemittanceNotification, index: int) -> None:
        if index < 0 or index >= len(row.items or []):
            raise NotFoundError("Remittance item not found", {"index": index, "items": len(row.items or [])})

    async def update_item(self, notification_id: UUID, index: int, item: RemittanceItem) -> RemittanceNotification:
        row = await self.get_notification(notification_id)
        self._check_index(row, index)
        items = list(row.items or [])
        items[index] = item.model_dump(mode="json")
        self.repo.replace_document(row, "items", items)
        return await self.repo.save(row)

    async def delete_item(self, notification_id: UUID, index: int) -> RemittanceNotification:
        row = await self.get_notification(notification_id)
        self._check_index(row, index)
        items = list(row.items or [])
        del items[index]
        self.repo.replace_document(row, "items", items)
        return await self.repo.save(row)

    async def send_one(self, payload: RemittanceSendRequest) -> Dict[str, Any]:
        """Send a single-invoice remittance advice."""
        line = TIBacklogRemittance.build_line_item(payload.invoice_number, payload.amount)
        return await self.backlog.remittance.post_remittance(payload.remittance_number, [line], payload.currency)

    async def send_stored(self, notification_id: UUID) -> Dict[str, Any]:
        """Send every item of a stored notification as one remittance advice."""
        row = await self.get_notification(notification_id)
        if not row.items:
            raise ValidationFailedError("Remittance notification has no items")
        lines = [
            TIBacklogRemittance.build_line_item(i.get("invoice_number"), i.get("amount")) for i in row.items
        ]
        return await self.backlog.remittance.post_remittance(row.remittance_number, lines, row.currency)
