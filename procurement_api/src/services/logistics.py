from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.errors import BacklogError, BacklogResponseError
from src.clients.ti_backlog import TIBacklogClient
from src.db.models.order import Order
from src.repositories.base import page_count
from src.repositories.order import OrderRepository
from .base import BaseService
from .errors import InvalidStateError, NotFoundError
from .reconciliation import apply_shipment

logger = logging.getLogger(__name__)


def consolidated_information(response: Any) -> Dict[str, Any]:
    """
    Extract the first consolidated shipment record of an ASN response.

    Raises:
        BacklogResponseError: consolidated information, booking order details or
        package details are missing.
    """
    data = response.get("data") if isinstance(response, dict) else None
    infos = data.get("consolidatedInformation") if isinstance(data, dict) else None
    if not isinstance(infos, list) or not infos or not isinstance(infos[0], dict):
        raise BacklogResponseError("ASN response contains no consolidatedInformation", body=response)
    info = infos[0]
    bookings = info.get("bookingOrderDetails")
    if not isinstance(bookings, list) or not bookings or not isinstance(bookings[0], dict):
        raise BacklogResponseError("ASN response is missing bookingOrderDetails", body=response)
    packages = bookings[0].get("packageDetails")
    if not isinstance(packages, list) or not packages:
        raise BacklogResponseError("ASN response is missing packageDetails", body=response)
    return info


def _logistics_row(order: Order) -> Dict[str, Any]:
    components = order.components or []
    ship_dates = sorted(c["shipping_date"] for c in components if c.get("shipping_date"))
    arrivals = sorted(c["estimated_date_of_arrival"] for c in components if c.get("estimated_date_of_arrival"))
    return {
        "order_id": order.order_number,
        "customer": order.customer,
        "shipping_date": ship_dates[0] if ship_dates else "",
        "estimated_delivery_date": arrivals[-1] if arrivals else "",
        "status": order.status,
        "ti_order_number": order.ti_order_number,
    }


class LogisticsService(BaseService):
    """Shipment tracking from TI advance shipment notices."""

    def __init__(
        self,
        session: AsyncSession,
        backlog: Optional[TIBacklogClient] = None,
        concurrency: int = 5,
    ) -> None:
        super().__init__(session, backlog)
        self.repo = OrderRepository(session)
        self.concurrency = max(1, concurrency)

    async def list_logistics(self, *, page: int, search_term: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        rows, total = await self.repo.list_by_order_number_or_customer(page=page, search_term=search_term)
        return [_logistics_row(o) for o in rows], page_count(total)

    async def _submitted_order(self, order_number: str) -> Order:
        order = await self.repo.get_by_order_number(order_number)
        if order is None:
            raise NotFoundError("Order not found", {"order_number": order_number})
        if not order.ti_order_number:
            raise InvalidStateError("Order has not been submitted to TI", {"order_number": order_number})
        return order

    async def _apply(self, order: Order, response: Any) -> Order:
        info = consolidated_information(response)
        components, matched = apply_shipment(list(order.components or []), info)
        if matched < len(components):
            logger.warning(
                "Order %s: %d component(s) not found in the shipment notice",
                order.order_number,
                len(components) - matched,
            )
        self.repo.replace_document(order, "components", components)
        return await self.repo.save(order)

    async def refresh(self, order_number: str) -> Tuple[Order, Dict[str, Any]]:
        """Merge the TI shipment notice for one order onto its components."""
        order = await self._submitted_order(order_number)
        response = await self.backlog.asn.retrieve_by_customer_number(order.order_number)
        order = await self._apply(order, response)
        return order, response

    async def refresh_many(self, order_numbers: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Refresh shipment data for many orders.

        ASN requests run concurrently, bounded by `concurrency`; results are
        applied one order at a time on this service's session. A failing order is
        logged and reported without stopping the others.
        """
        failed: List[Dict[str, str]] = []
        orders: List[Order] = []
        if order_numbers is None:
            orders = await self.repo.list_submitted()
        else:
            for number in dict.fromkeys(order_numbers):
                try:
                    orders.append(await self._submitted_order(number))
                except (NotFoundError, InvalidStateError) as exc:
                    logger.warning("Skipping logistics refresh for %s: %s", number, exc.message)
                    failed.append({"order_number": number, "error": exc.message})

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch(order: Order) -> Tuple[Order, Any, Optional[BacklogError]]:
            async with semaphore:
                try:
                    return order, await self.backlog.asn.retrieve_by_customer_number(order.order_number), None
                except BacklogError as exc:
                    return order, None, exc

        results = await asyncio.gather(*(fetch(o) for o in orders))

        refreshed: List[str] = []
        for order, response, error in results:
            number = order.order_number or ""
            if error is None:
                try:
                    await self._apply(order, response)
                except BacklogResponseError as exc:
                    error = exc
            if error is not None:
                logger.warning("Logistics refresh failed for order %s: %s", number, error.message)
                failed.append({"order_number": number, "error": error.message})
                continue
            refreshed.append(number)

        logger.info("Logistics refresh: %d refreshed, %d failed", len(refreshed), len(failed))
        return {"refreshed": refreshed, "failed": failed}
