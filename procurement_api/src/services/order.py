from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient, TIBacklogOrders
from src.core.formatting import normalize_part_number
from src.db.models.order import Order
from src.repositories.base import page_count
from src.repositories.order import OrderRepository
from src.repositories.quotation import QuotationRepository
from src.schemas.order import (
    OrderComponent,
    OrderComponentCreate,
    OrderComponentUpdate,
    OrderCreate,
    OrderModifyRequest,
)

from .base import BaseService, first_document
from .errors import InvalidStateError, NotFoundError, ValidationFailedError
from .reconciliation import (
    apply_modified_line_item,
    apply_order_update_line_item,
    apply_submitted_line_items,
    find_line_item,
    order_total,
    reconcile_order_components,
)

logger = logging.getLogger(__name__)

NOT_SUBMITTED = "Order has not been submitted to TI"

EXPORT_COLUMNS = [
    "date",
    "customer",
    "purchase_order_number",
    "ti_order_number",
    "order_status",
    "part_number",
    "k3_code",
    "quantity",
    "unit_price",
    "status",
    "delivery_date",
    "quote_number",
    "confirmations",
]


def _new_component(payload: OrderComponentCreate, default_quote_number: Optional[str]) -> Dict[str, Any]:
    data = payload.model_dump(mode="json", exclude={"ti_price"})
    data["id"] = data.get("id") or uuid.uuid4().hex
    # Orders are priced at the quoted TI price when one is supplied.
    if payload.ti_price is not None:
        data["unit_price"] = payload.ti_price
    elif data.get("unit_price") is None:
        data["unit_price"] = 0.0
    if not data.get("quote_number"):
        data["quote_number"] = default_quote_number
    return OrderComponent(**data).model_dump(mode="json")


def _confirmation_summary(confirmations: List[Dict[str, Any]]) -> str:
    parts = []
    for conf in confirmations or []:
        parts.append(
            f"{conf.get('scheduled_quantity') or 0} @ ship {conf.get('estimated_ship_date') or '-'}"
            f" / deliver {conf.get('estimated_delivery_date') or '-'}"
        )
    return "; ".join(parts)


class OrderService(BaseService):
    """Order lifecycle: local editing, submission to TI, status queries and change orders."""

    def __init__(self, session: AsyncSession, backlog: Optional[TIBacklogClient] = None) -> None:
        super().__init__(session, backlog)
        self.repo = OrderRepository(session)

    async def list_orders(
        self,
        *,
        page: int,
        search_term: Optional[str] = None,
        order_status: Optional[str] = None,
        component_status: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        rows, total = await self.repo.list_orders(
            page=page,
            search_term=search_term,
            order_status=order_status,
            component_status=component_status,
        )
        return rows, page_count(total)

    async def get_order(self, order_id: UUID) -> Order:
        order = await self.repo.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found", {"order_id": str(order_id)})
        return order

    async def create_order(self, payload: OrderCreate) -> Order:
        components = [_new_component(c, payload.quote_number) for c in payload.components]
        order = Order(
            date=payload.date,
            customer=payload.customer,
            status=payload.status,
            order_number=payload.purchase_order_number,
            purchase_order_number=payload.purchase_order_number,
            quotation_id=payload.quotation_id,
            quote_number=payload.quote_number,
            total_amount=order_total(components),
        )
        self.repo.replace_document(order, "components", components)
        self.repo.replace_document(order, "api_logs", [])
        order = await self.repo.save(order)
        logger.info("Created order %s (%s) with %d components", order.id, order.order_number, len(components))
        return order

    async def delete_order(self, order_id: UUID) -> None:
        order = await self.get_order(order_id)
        await self.repo.delete(order)
        logger.info("Deleted order %s", order_id)

    async def _store(self, order: Order, components: List[Dict[str, Any]], log: Optional[str] = None) -> Order:
        self.repo.replace_document(order, "components", components)
        order.total_amount = order_total(components)
        if log:
            self.repo.replace_document(order, "api_logs", list(order.api_logs or []) + [self.api_log(log)])
        return await self.repo.save(order)

    async def add_component(self, order_id: UUID, payload: OrderComponentCreate) -> Order:
        order = await self.get_order(order_id)
        components = list(order.components or [])
        new = _new_component(payload, order.quote_number)
        if any(str(c.get("id")) == new["id"] for c in components):
            new["id"] = uuid.uuid4().hex
        components.append(new)
        return await self._store(order, components)

    async def update_component(
        self, order_id: UUID, component_id: str, payload: OrderComponentUpdate
    ) -> Tuple[Order, Dict[str, Any]]:
        order = await self.get_order(order_id)
        components = [dict(c) for c in order.components or []]
        for idx, comp in enumerate(components):
            if str(comp.get("id")) == component_id:
                merged = {**comp, **payload.model_dump(mode="json", exclude_unset=True)}
                components[idx] = OrderComponent(**merged).model_dump(mode="json")
                order = await self._store(order, components)
                return order, components[idx]
        raise NotFoundError("Component not found", {"component_id": component_id})

    async def update_purchase_order_number(self, order_id: UUID, purchase_order_number: str) -> Order:
        order = await self.get_order(order_id)
        if order.ti_order_number:
            raise InvalidStateError(
                "Purchase order number cannot change after submission",
                {"ti_order_number": order.ti_order_number},
            )
        order.purchase_order_number = purchase_order_number
        order.order_number = purchase_order_number
        return await self.repo.save(order)

    def _order_line_items(self, components: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            return [
                TIBacklogOrders.build_line_item(
                    idx + 1,
                    comp.get("name"),
                    comp.get("quantity"),
                    comp.get("delivery_date"),
                    comp.get("unit_price"),
                    comp.get("quote_number"),
                    comp.get("k3_code"),
                    self.backlog.currency_code,
                )
                for idx, comp in enumerate(components)
            ]
        except ValueError as exc:
            raise ValidationFailedError(str(exc)) from exc

    async def submit(self, order_id: UUID) -> Tuple[Order, Dict[str, Any]]:
        """Place the order with TI and record the TI order number."""
        order = await self.get_order(order_id)
        if order.ti_order_number:
            raise InvalidStateError("Order has already been submitted to TI", {"ti_order_number": order.ti_order_number})
        components = list(order.components or [])
        if not components:
            raise ValidationFailedError("Order has no components to submit")

        response = await self.backlog.orders.post_order(order.order_number, self._order_line_items(components))
        ti_order = first_document(response, "orders")

        order.status = ti_order.get("orderStatus") or order.status
        order.ti_order_number = str(ti_order.get("orderNumber") or "") or None
        updated = apply_submitted_line_items(components, ti_order.get("lineItems") or [])
        order = await self._store(order, updated, log="submit")
        logger.info("Order %s submitted to TI as %s", order.order_number, order.ti_order_number)
        return order, response

    async def query(self, order_id: UUID) -> Tuple[Order, Dict[str, Any]]:
        """Reconcile the order with every TI order returned for its purchase order number."""
        order = await self.get_order(order_id)
        if not order.ti_order_number:
            raise InvalidStateError(NOT_SUBMITTED)

        response = await self.backlog.orders.retrieve_by_customer_number(order.order_number)
        first = first_document(response, "orders")
        order.status = first.get("orderStatus") or order.status

        updated, matched = reconcile_order_components(list(order.components or []), response["orders"])
        if matched < len(updated):
            logger.warning(
                "Order %s: %d of %d component(s) have no TI line item",
                order.order_number,
                len(updated) - matched,
                len(updated),
            )
        order = await self._store(order, updated)
        return order, response

    async def modify(self, order_id: UUID, payload: OrderModifyRequest) -> Tuple[Order, Dict[str, Any]]:
        """
        Send a change order for the edited components. Each must exist in the
        order and be quoted under its quote number; the quoted TI price becomes
        the line price.
        """
        order = await self.get_order(order_id)
        if not order.ti_order_number:
            raise InvalidStateError(NOT_SUBMITTED)

        quotations = QuotationRepository(self.session)
        components = list(order.components or [])
        index_by_id = {str(c.get("id")): idx for idx, c in enumerate(components)}

        changes: List[Dict[str, Any]] = []
        line_items: List[Dict[str, Any]] = []
        for edit in payload.components:
            if edit.id not in index_by_id:
                raise ValidationFailedError(
                    f"Component {edit.name} is not part of this order",
                    {"component_id": edit.id, "component_name": edit.name},
                )
            quoted = await quotations.find_quoted_component(edit.quote_number, edit.name)
            if quoted is None:
                raise ValidationFailedError(
                    f"Quote {edit.quote_number} has no component {edit.name}",
                    {"component_name": edit.name, "quote_number": edit.quote_number},
                )
            ti_price = float(quoted.get("ti_price") or 0.0)
            try:
                line_item = TIBacklogOrders.build_line_item(
                    index_by_id[edit.id] + 1,
                    edit.name,
                    edit.quantity,
                    edit.delivery_date,
                    ti_price,
                    edit.quote_number,
                    components[index_by_id[edit.id]].get("k3_code"),
                    self.backlog.currency_code,
                )
            except ValueError as exc:
                raise ValidationFailedError(str(exc), {"component_id": edit.id}) from exc
            line_item["lineItemChangeIndicator"] = "X" if edit.is_deleted else "U"
            line_items.append(line_item)
            changes.append({**edit.model_dump(), "unit_price": ti_price})

        response = await self.backlog.orders.change_order(order.order_number, line_items)
        ti_orders = response.get("orders") if isinstance(response, dict) else None
        upstream_lines: List[Dict[str, Any]] = []
        if ti_orders:
            order.status = ti_orders[0].get("orderStatus") or order.status
            upstream_lines = ti_orders[0].get("lineItems") or []
        else:
            logger.warning("Change order response for %s contained no orders", order.order_number)

        for change in changes:
            idx = index_by_id[change["id"]]
            probe = {**components[idx], "name": change["name"]}
            components[idx] = apply_modified_line_item(
                components[idx], change, find_line_item(probe, upstream_lines)
            )

        order = await self._store(order, components, log="modify")
        logger.info("Order %s modified (%d line item(s))", order.order_number, len(changes))
        return order, response

    async def apply_ti_update(self, body: Any) -> Order:
        """
        Apply an order update pushed by TI. The first order in the payload is
        matched by TI order number; its line items update components with the
        same part number.
        """
        ti_orders = body.get("orders") if isinstance(body, dict) else None
        if not isinstance(ti_orders, list) or not ti_orders or not isinstance(ti_orders[0], dict):
            raise ValidationFailedError("Order update contains no orders")
        ti_order = ti_orders[0]
        ti_number = ti_order.get("orderNumber")
        order = await self.repo.get_by_ti_order_number(str(ti_number)) if ti_number else None
        if order is None:
            raise NotFoundError("No order with this TI order number", {"ti_order_number": ti_number})

        if ti_order.get("orderStatus"):
            order.status = ti_order["orderStatus"]
        components = list(order.components or [])
        for line_item in ti_order.get("lineItems") or []:
            if not isinstance(line_item, dict):
                continue
            part = normalize_part_number(line_item.get("tiPartNumber"))
            for idx, comp in enumerate(components):
                if normalize_part_number(comp.get("name")) == part:
                    components[idx] = apply_order_update_line_item(comp, line_item)
                    break
        order = await self._store(order, components)
        logger.info("Applied TI update to order %s (status %s)", order.order_number, order.status)
        return order

    async def export_rows(self, ids: Sequence[UUID]) -> List[Dict[str, Any]]:
        """One row per component of the selected orders."""
        rows: List[Dict[str, Any]] = []
        for o in await self.repo.get_many(ids):
            for comp in o.components or []:
                rows.append(
                    {
                        "date": o.date.isoformat() if o.date else "",
                        "customer": o.customer,
                        "purchase_order_number": o.purchase_order_number,
                        "ti_order_number": o.ti_order_number or "",
                        "order_status": o.status,
                        "part_number": comp.get("name"),
                        "k3_code": comp.get("k3_code"),
                        "quantity": comp.get("quantity", 0),
                        "unit_price": comp.get("unit_price", 0.0),
                        "status": comp.get("status"),
                        "delivery_date": comp.get("delivery_date") or "",
                        "quote_number": comp.get("quote_number") or "",
                        "confirmations": _confirmation_summary(comp.get("confirmations") or []),
                    }
                )
        return rows
