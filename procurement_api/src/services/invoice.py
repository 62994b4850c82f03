from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient
from src.repositories.base import page_count
from src.repositories.order import OrderRepository
from .base import BaseService
from .errors import NotFoundError

logger = logging.getLogger(__name__)


class InvoiceService(BaseService):
    """Invoice view over orders plus TI financial document lookup."""

    def __init__(self, session: AsyncSession, backlog: Optional[TIBacklogClient] = None) -> None:
        super().__init__(session, backlog)
        self.repo = OrderRepository(session)

    async def list_invoices(self, *, page: int, search_term: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        rows, total = await self.repo.list_by_purchase_order_or_customer(page=page, search_term=search_term)
        info = [
            {
                "order_id": o.purchase_order_number,
                "customer": o.customer,
                "components": [
                    {
                        "name": c.get("name"),
                        "quantity": c.get("quantity") or 0,
                        "unit_price": c.get("unit_price") or 0.0,
                        "invoice_number": c.get("invoice_number") or "",
                        "invoice_date": c.get("invoice_date") or "",
                    }
                    for c in o.components or []
                ],
            }
            for o in rows
        ]
        return info, page_count(total)

    async def query(self, order_number: str) -> Dict[str, Any]:
        """
        Fetch financial documents for a customer purchase order number, with the
        first document's PDF exposed as a `data:` URL under `pdf_url`.
        """
        response = await self.backlog.invoices.retrieve_by_customer_number(order_number, request_pdf=True)
        documents = response.get("documents") if isinstance(response, dict) else None
        if not documents:
            raise NotFoundError("No invoices found in TI", {"order_number": order_number})

        result = dict(response)
        pdf = documents[0].get("documentPDF")
        result["pdf_url"] = f"data:application/pdf;base64,{pdf}" if pdf else None
        logger.info("Retrieved %d financial document(s) for %s", len(documents), order_number)
        return result
