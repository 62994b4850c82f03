from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import Select, or_, select

from src.db.models.order import Order
from .base import PAGE_SIZE, BaseRepository, paginate_list


class OrderRepository(BaseRepository):
    """Repository for orders."""

    @staticmethod
    def _newest_first(stmt: Select) -> Select:
        return stmt.order_by(Order.date.desc().nullslast(), Order.created_at.desc(), Order.id)

    async def list_orders(
        self,
        *,
        page: int,
        search_term: Optional[str] = None,
        order_status: Optional[str] = None,
        component_status: Optional[str] = None,
        page_size: int = PAGE_SIZE,
    ) -> Tuple[List[Order], int]:
        stmt = select(Order)
        if search_term:
            like = f"%{search_term}%"
            stmt = stmt.where(
                or_(
                    Order.purchase_order_number.ilike(like),
                    Order.ti_order_number.ilike(like),
                    Order.customer.ilike(like),
                )
            )
        if order_status:
            stmt = stmt.where(Order.status == order_status)
        stmt = self._newest_first(stmt)

        if not component_status:
            return await self.page(stmt, page, page_size)

        # Component status lives inside the JSON document; filter after loading.
        rows = [
            o for o in await self.scalars(stmt)
            if any(c.get("status") == component_status for c in (o.components or []))
        ]
        return paginate_list(rows, page, page_size), len(rows)

    async def list_by_order_number_or_customer(
        self, *, page: int, search_term: Optional[str] = None, page_size: int = PAGE_SIZE
    ) -> Tuple[List[Order], int]:
        stmt = select(Order)
        if search_term:
            like = f"%{search_term}%"
            stmt = stmt.where(or_(Order.order_number.ilike(like), Order.customer.ilike(like)))
        return await self.page(self._newest_first(stmt), page, page_size)

    async def list_by_purchase_order_or_customer(
        self, *, page: int, search_term: Optional[str] = None, page_size: int = PAGE_SIZE
    ) -> Tuple[List[Order], int]:
        stmt = select(Order)
        if search_term:
            like = f"%{search_term}%"
            stmt = stmt.where(or_(Order.purchase_order_number.ilike(like), Order.customer.ilike(like)))
        return await self.page(self._newest_first(stmt), page, page_size)

    async def get_order(self, order_id: UUID) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        return await self.scalar_one_or_none(stmt)

    async def get_many(self, ids: Sequence[UUID]) -> List[Order]:
        stmt = self._newest_first(select(Order).where(Order.id.in_(list(ids))))
        return list(await self.scalars(stmt))

    async def get_by_order_number(self, order_number: str) -> Optional[Order]:
        stmt = select(Order).where(Order.order_number == order_number).order_by(Order.created_at.desc()).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def get_by_ti_order_number(self, ti_order_number: str) -> Optional[Order]:
        stmt = select(Order).where(Order.ti_order_number == ti_order_number).order_by(Order.created_at.desc()).limit(1)
        return await self.scalar_one_or_none(stmt)

    async def list_submitted(self) -> List[Order]:
        stmt = (
            select(Order)
            .where(Order.ti_order_number.is_not(None), Order.ti_order_number != "")
            .order_by(Order.created_at)
        )
        return list(await self.scalars(stmt))
