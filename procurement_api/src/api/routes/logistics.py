from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient
from src.core.deps import get_backlog_client, get_db_session, get_settings_dep
from src.core.settings import AppSettings
from src.schemas.logistics import (
    BulkRefreshRequest,
    BulkRefreshResponse,
    LogisticsInfo,
    LogisticsListResponse,
    LogisticsRefreshResponse,
)
from src.schemas.order import OrderComponent
from src.services.logistics import LogisticsService

router = APIRouter(prefix="/logistics", tags=["Logistics"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=LogisticsListResponse,
    summary="List shipments",
    description="Shipment overview per order; search_term matches order number or customer.",
)
async def list_logistics(
    session: AsyncSession = Depends(get_db_session),
    page: int = Query(1, ge=1),
    search_term: Optional[str] = Query(None),
) -> LogisticsListResponse:
    rows, total_pages = await LogisticsService(session).list_logistics(page=page, search_term=search_term)
    return LogisticsListResponse(logistics_info=[LogisticsInfo(**r) for r in rows], total_pages=total_pages)


# PUBLIC_INTERFACE
@router.post(
    "/refresh",
    response_model=BulkRefreshResponse,
    summary="Refresh shipments for many orders",
    description=(
        "Fetch TI shipment notices for the given order numbers (all submitted orders when omitted). "
        "Failures are reported per order and do not stop the batch."
    ),
)
async def refresh_many(
    payload: Optional[BulkRefreshRequest] = Body(None),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
    settings: AppSettings = Depends(get_settings_dep),
) -> BulkRefreshResponse:
    service = LogisticsService(session, backlog, concurrency=settings.LOGISTICS_REFRESH_CONCURRENCY)
    result = await service.refresh_many(payload.order_numbers if payload else None)
    return BulkRefreshResponse(**result)


# PUBLIC_INTERFACE
@router.get(
    "/refresh/{order_number}",
    response_model=LogisticsRefreshResponse,
    summary="Refresh shipment for one order",
    description="Merge shipping date, estimated arrival and carrier from the TI shipment notice.",
)
async def refresh_one(
    order_number: str = Path(..., description="Customer purchase order number"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> LogisticsRefreshResponse:
    order, response = await LogisticsService(session, backlog).refresh(order_number)
    return LogisticsRefreshResponse(
        components=[OrderComponent(**c) for c in order.components or []],
        ti_response=response,
    )
