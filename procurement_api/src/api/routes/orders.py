from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.export import export_rows
from src.clients.ti_backlog import TIBacklogClient
from src.core.deps import get_backlog_client, get_db_session
from src.schemas.common import ExportFormat, ExportRequest, MessageResponse
from src.schemas.order import (
    OrderComponent,
    OrderComponentCreate,
    OrderComponentUpdate,
    OrderCreate,
    OrderListResponse,
    OrderModifyRequest,
    OrderRead,
    OrderSyncResponse,
    PurchaseOrderNumberUpdate,
)
from src.services.order import EXPORT_COLUMNS, OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description=(
        "Return a page of 10 orders, newest date first. search_term matches the purchase order number, "
        "TI order number or customer; order_status and component_status filter exactly."
    ),
)
async def list_orders(
    session: AsyncSession = Depends(get_db_session),
    page: int = Query(1, ge=1),
    search_term: Optional[str] = Query(None, description="Substring of PO number, TI order number or customer"),
    order_status: Optional[str] = Query(None, description="Order status"),
    component_status: Optional[str] = Query(None, description="Status of at least one component"),
) -> OrderListResponse:
    rows, total_pages = await OrderService(session).list_orders(
        page=page,
        search_term=search_term,
        order_status=order_status,
        component_status=component_status,
    )
    return OrderListResponse(orders=[OrderRead.model_validate(o) for o in rows], total_pages=total_pages)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create an order; components with a quoted ti_price are priced at it.",
)
async def create_order(
    payload: OrderCreate,
    session: AsyncSession = Depends(get_db_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).create_order(payload))


# PUBLIC_INTERFACE
@router.post(
    "/export",
    summary="Export orders",
    description="Export the components of the selected orders, including a confirmation summary.",
    response_description="JSON rows or a file stream (CSV/XLSX/PDF)",
)
async def export_orders(
    payload: ExportRequest,
    session: AsyncSession = Depends(get_db_session),
    format: ExportFormat = Query(ExportFormat.json, description="Export format"),
):
    rows = await OrderService(session).export_rows(payload.ids)
    return export_rows(rows, "orders", format, EXPORT_COLUMNS)


# PUBLIC_INTERFACE
@router.get("/{order_id}", response_model=OrderRead, summary="Get order")
async def get_order(
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).get_order(order_id))


# PUBLIC_INTERFACE
@router.delete("/{order_id}", response_model=MessageResponse, summary="Delete order")
async def delete_order(
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await OrderService(session).delete_order(order_id)
    return MessageResponse(message="Order deleted")


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/components",
    response_model=OrderRead,
    summary="Add order component",
)
async def add_order_component(
    payload: OrderComponentCreate,
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
) -> OrderRead:
    return OrderRead.model_validate(await OrderService(session).add_component(order_id, payload))


# PUBLIC_INTERFACE
@router.put(
    "/{order_id}/components/{component_id}",
    response_model=OrderComponent,
    summary="Update order component",
    description="Merge the given fields into the component, recompute the total and return the component.",
)
async def update_order_component(
    payload: OrderComponentUpdate,
    order_id: UUID = Path(..., description="Order id"),
    component_id: str = Path(..., description="Component id"),
    session: AsyncSession = Depends(get_db_session),
) -> OrderComponent:
    _, component = await OrderService(session).update_component(order_id, component_id, payload)
    return OrderComponent(**component)


# PUBLIC_INTERFACE
@router.put(
    "/{order_id}/purchase-order-number",
    response_model=OrderRead,
    summary="Update purchase order number",
    description="Change the customer purchase order number of an order not yet submitted to TI.",
)
async def update_purchase_order_number(
    payload: PurchaseOrderNumberUpdate,
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
) -> OrderRead:
    updated = await OrderService(session).update_purchase_order_number(order_id, payload.purchase_order_number)
    return OrderRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/submit",
    response_model=OrderSyncResponse,
    summary="Submit order to TI",
)
async def submit_order(
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> OrderSyncResponse:
    order, response = await OrderService(session, backlog).submit(order_id)
    return OrderSyncResponse(order=OrderRead.model_validate(order), ti_response=response)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}/query",
    response_model=OrderSyncResponse,
    summary="Query order at TI",
    description="Reconcile status, quantities, prices and confirmations with TI.",
)
async def query_order(
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> OrderSyncResponse:
    order, response = await OrderService(session, backlog).query(order_id)
    return OrderSyncResponse(order=OrderRead.model_validate(order), ti_response=response)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/modify",
    response_model=OrderSyncResponse,
    summary="Modify submitted order",
    description="Send a TI change order updating or cancelling lines, priced from the referenced quotes.",
)
async def modify_order(
    payload: OrderModifyRequest,
    order_id: UUID = Path(..., description="Order id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> OrderSyncResponse:
    order, response = await OrderService(session, backlog).modify(order_id, payload)
    return OrderSyncResponse(order=OrderRead.model_validate(order), ti_response=response)
