from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select

from src.core.formatting import normalize_part_number
from src.db.models.quotation import Quotation
from .base import BaseRepository


class QuotationRepository(BaseRepository):
    """Repository for quotations."""

    async def list_quotations(
        self, *, quote_number: Optional[str], page: int, limit: int
    ) -> Tuple[List[Quotation], int]:
        stmt = select(Quotation)
        if quote_number:
            stmt = stmt.where(Quotation.quote_number.ilike(f"%{quote_number}%"))
        stmt = stmt.order_by(Quotation.created_at.desc(), Quotation.id)
        return await self.page(stmt, page, limit)

    async def get_quotation(self, quotation_id: UUID) -> Optional[Quotation]:
        stmt = select(Quotation).where(Quotation.id == quotation_id)
        return await self.scalar_one_or_none(stmt)

    async def get_many(self, ids: Sequence[UUID]) -> List[Quotation]:
        stmt = select(Quotation).where(Quotation.id.in_(list(ids))).order_by(Quotation.date, Quotation.id)
        return list(await self.scalars(stmt))

    async def find_quoted_component(self, quote_number: str, part_number: str) -> Optional[Dict[str, Any]]:
        """
        Return the component for `part_number` from a quotation carrying
        `quote_number`, or None when no such quoted line exists.
        """
        stmt = select(Quotation).where(Quotation.quote_number == quote_number).order_by(Quotation.created_at.desc())
        wanted = normalize_part_number(part_number)
        for quotation in await self.scalars(stmt):
            for comp in quotation.components or []:
                if normalize_part_number(comp.get("name")) == wanted:
                    return comp
        return None
