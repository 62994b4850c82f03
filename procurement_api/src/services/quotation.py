from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.quotation import Quotation
from src.repositories.quotation import QuotationRepository
from src.schemas.quotation import (
    MoqNqUpdate,
    QuotationComponent,
    QuotationComponentCreate,
    QuotationComponentUpdate,
    QuotationCreate,
)
from src.clients.ti_backlog import TIBacklogClient, TIBacklogQuotes
from .base import BaseService, first_document
from .errors import InvalidStateError, NotFoundError, ValidationFailedError
from .reconciliation import apply_quote_line_items, next_component_id, quotation_total

logger = logging.getLogger(__name__)

SENT_STATUS = "onTheWay"

EXPORT_COLUMNS = [
    "date",
    "customer",
    "quote_number",
    "customer_quote_number",
    "quote_status",
    "part_number",
    "k3_code",
    "quantity",
    "unit_price",
    "ti_price",
    "moq",
    "nq",
    "status",
    "delivery_date",
    "subtotal",
]


class QuotationService(BaseService):
    """Quotation lifecycle: local editing plus the TI quote round-trips."""

    def __init__(self, session: AsyncSession, backlog: Optional[TIBacklogClient] = None) -> None:
        super().__init__(session, backlog)
        self.repo = QuotationRepository(session)

    async def list_quotations(self, *, quote_number: Optional[str], page: int, limit: int) -> Tuple[List[Quotation], int]:
        return await self.repo.list_quotations(quote_number=quote_number, page=page, limit=limit)

    async def get_quotation(self, quotation_id: UUID) -> Quotation:
        quotation = await self.repo.get_quotation(quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation not found", {"quotation_id": str(quotation_id)})
        return quotation

    @staticmethod
    def _assign_ids(components: Sequence[QuotationComponentCreate]) -> List[Dict[str, Any]]:
        assigned: List[Dict[str, Any]] = []
        for comp in components:
            data = comp.model_dump(mode="json")
            if not data.get("id") or any(c["id"] == data["id"] for c in assigned):
                data["id"] = next_component_id(assigned)
            assigned.append(QuotationComponent(**data).model_dump(mode="json"))
        return assigned

    async def create_quotation(self, payload: QuotationCreate) -> Quotation:
        components = self._assign_ids(payload.components)
        quotation_id = uuid.uuid4()
        quotation = Quotation(
            id=quotation_id,
            date=payload.date,
            customer=payload.customer,
            quote_status=payload.quote_status,
            quote_number=payload.quote_number,
            customer_quote_number=payload.customer_quote_number or str(quotation_id),
            quote_start_date=payload.quote_start_date,
            quote_end_date=payload.quote_end_date,
            total_amount=quotation_total(components),
        )
        self.repo.replace_document(quotation, "components", components)
        quotation = await self.repo.save(quotation)
        logger.info("Created quotation %s for %s (%d components)", quotation.id, quotation.customer, len(components))
        return quotation

    async def delete_quotation(self, quotation_id: UUID) -> None:
        quotation = await self.get_quotation(quotation_id)
        await self.repo.delete(quotation)
        logger.info("Deleted quotation %s", quotation_id)

    async def _store_components(self, quotation: Quotation, components: List[Dict[str, Any]]) -> Quotation:
        self.repo.replace_document(quotation, "components", components)
        quotation.total_amount = quotation_total(components)
        return await self.repo.save(quotation)

    async def add_item(self, quotation_id: UUID, payload: QuotationComponentCreate) -> Quotation:
        quotation = await self.get_quotation(quotation_id)
        components = list(quotation.components or [])
        data = payload.model_dump(mode="json")
        data["id"] = next_component_id(components)
        components.append(QuotationComponent(**data).model_dump(mode="json"))
        return await self._store_components(quotation, components)

    async def update_component(
        self, quotation_id: UUID, component_id: str, payload: QuotationComponentUpdate
    ) -> Quotation:
        quotation = await self.get_quotation(quotation_id)
        components = [dict(c) for c in quotation.components or []]
        for idx, comp in enumerate(components):
            if str(comp.get("id")) == component_id:
                merged = {**comp, **payload.model_dump(mode="json", exclude_unset=True)}
                components[idx] = QuotationComponent(**merged).model_dump(mode="json")
                break
        else:
            raise NotFoundError("Component not found", {"component_id": component_id})
        return await self._store_components(quotation, components)

    async def send_to_ti(self, quotation_id: UUID) -> Tuple[Quotation, Dict[str, Any]]:
        """
        Request a TI quote for every component. The quotation takes the TI quote
        number and status; each component is marked sent, then takes the line
        status TI reported for its part number.
        """
        quotation = await self.get_quotation(quotation_id)
        components = list(quotation.components or [])
        if not components:
            raise ValidationFailedError("Quotation has no components to send")

        try:
            line_items = [TIBacklogQuotes.build_line_item(c.get("name"), c.get("quantity")) for c in components]
        except ValueError as exc:
            raise ValidationFailedError(str(exc)) from exc

        response = await self.backlog.quotes.post_quote(line_items)
        quote = first_document(response, "quotes")

        quotation.quote_number = str(quote.get("quoteNumber") or "")
        if quote.get("quoteStatus"):
            quotation.quote_status = quote["quoteStatus"]
        updated = apply_quote_line_items(components, quote.get("lineItems") or [], reset_status=SENT_STATUS)
        quotation = await self._store_components(quotation, updated)
        logger.info("Quotation %s sent to TI as quote %s", quotation.id, quotation.quote_number)
        return quotation, response

    async def query_ti(self, quotation_id: UUID) -> Tuple[Quotation, Dict[str, Any]]:
        """Refresh component status and TI unit price from the TI quote."""
        quotation = await self.get_quotation(quotation_id)
        if not quotation.quote_number:
            raise InvalidStateError("Quotation has not been sent to TI")

        response = await self.backlog.quotes.get_quote(quotation.quote_number)
        quotes = response.get("quotes") if isinstance(response, dict) else None
        if not quotes:
            raise NotFoundError("Quote not found in TI", {"quote_number": quotation.quote_number})
        quote = quotes[0]

        if quote.get("quoteStatus"):
            quotation.quote_status = quote["quoteStatus"]
        updated = apply_quote_line_items(list(quotation.components or []), quote.get("lineItems") or [], with_price=True)
        quotation = await self._store_components(quotation, updated)
        return quotation, response

    async def update_moq_nq(self, quotation_id: UUID, payload: MoqNqUpdate) -> Quotation:
        quotation = await self.get_quotation(quotation_id)
        quotation.quote_number = payload.quote_number
        quotation.quote_start_date = payload.quote_start_date
        quotation.quote_end_date = payload.quote_end_date
        return await self._store_components(quotation, self.dump_components(payload.components))

    async def export_rows(self, ids: Sequence[UUID]) -> List[Dict[str, Any]]:
        """One row per component of the selected quotations."""
        rows: List[Dict[str, Any]] = []
        for q in await self.repo.get_many(ids):
            for comp in q.components or []:
                quantity = comp.get("quantity") or 0
                unit_price = comp.get("unit_price") or 0.0
                rows.append(
                    {
                        "date": q.date.isoformat(),
                        "customer": q.customer,
                        "quote_number": q.quote_number,
                        "customer_quote_number": q.customer_quote_number,
                        "quote_status": q.quote_status,
                        "part_number": comp.get("name"),
                        "k3_code": comp.get("k3_code"),
                        "quantity": quantity,
                        "unit_price": unit_price,
                        "ti_price": comp.get("ti_price", 0.0),
                        "moq": comp.get("moq", 0),
                        "nq": comp.get("nq", 0),
                        "status": comp.get("status"),
                        "delivery_date": comp.get("delivery_date"),
                        "subtotal": quantity * unit_price,
                    }
                )
        return rows
