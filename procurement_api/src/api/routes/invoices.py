from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient
from src.core.deps import get_backlog_client, get_db_session
from src.schemas.invoice import InvoiceInfo, InvoiceListResponse
from src.services.invoice import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=InvoiceListResponse,
    summary="List invoices",
    description="Invoice fields of each order's components; search_term matches PO number or customer.",
)
async def list_invoices(
    session: AsyncSession = Depends(get_db_session),
    page: int = Query(1, ge=1),
    search_term: Optional[str] = Query(None),
) -> InvoiceListResponse:
    rows, total_pages = await InvoiceService(session).list_invoices(page=page, search_term=search_term)
    return InvoiceListResponse(invoice_info=[InvoiceInfo(**r) for r in rows], total_pages=total_pages)


# PUBLIC_INTERFACE
@router.get(
    "/query",
    response_model=Dict[str, Any],
    summary="Query TI invoices",
    description="TI financial documents for a purchase order; the first PDF is returned as a data URL in pdf_url.",
)
async def query_invoices(
    order_number: str = Query(..., min_length=1, description="Customer purchase order number"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> Dict[str, Any]:
    return await InvoiceService(session, backlog).query(order_number)
