from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.export import export_rows
from src.clients.ti_backlog import TIBacklogClient
from src.core.deps import get_backlog_client, get_db_session
from src.schemas.common import ExportFormat, ExportRequest, MessageResponse
from src.schemas.quotation import (
    MoqNqUpdate,
    QuotationComponentCreate,
    QuotationComponentUpdate,
    QuotationCreate,
    QuotationListResponse,
    QuotationRead,
    QuotationSyncResponse,
)
from src.services.quotation import EXPORT_COLUMNS, QuotationService

router = APIRouter(prefix="/quotations", tags=["Quotations"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=QuotationListResponse,
    summary="List quotations",
    description="Return a page of quotations, newest first, optionally filtered by TI quote number (substring).",
)
async def list_quotations(
    session: AsyncSession = Depends(get_db_session),
    quote_number: Optional[str] = Query(None, description="Case-insensitive substring of the TI quote number"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> QuotationListResponse:
    rows, total = await QuotationService(session).list_quotations(quote_number=quote_number, page=page, limit=limit)
    return QuotationListResponse(
        quotations=[QuotationRead.model_validate(q) for q in rows],
        total_quotations=total,
    )


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=QuotationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create quotation",
    description="Create a quotation; component ids are assigned and the total is computed.",
)
async def create_quotation(
    payload: QuotationCreate,
    session: AsyncSession = Depends(get_db_session),
) -> QuotationRead:
    created = await QuotationService(session).create_quotation(payload)
    return QuotationRead.model_validate(created)


# PUBLIC_INTERFACE
@router.post(
    "/export",
    summary="Export quotations",
    description="Export the components of the selected quotations as json, csv, xlsx or pdf.",
    response_description="JSON rows or a file stream (CSV/XLSX/PDF)",
)
async def export_quotations(
    payload: ExportRequest,
    session: AsyncSession = Depends(get_db_session),
    format: ExportFormat = Query(ExportFormat.json, description="Export format"),
):
    rows = await QuotationService(session).export_rows(payload.ids)
    return export_rows(rows, "quotations", format, EXPORT_COLUMNS)


# PUBLIC_INTERFACE
@router.get(
    "/{quotation_id}",
    response_model=QuotationRead,
    summary="Get quotation",
)
async def get_quotation(
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
) -> QuotationRead:
    return QuotationRead.model_validate(await QuotationService(session).get_quotation(quotation_id))


# PUBLIC_INTERFACE
@router.delete(
    "/{quotation_id}",
    response_model=MessageResponse,
    summary="Delete quotation",
)
async def delete_quotation(
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await QuotationService(session).delete_quotation(quotation_id)
    return MessageResponse(message="Quotation deleted")


# PUBLIC_INTERFACE
@router.post(
    "/{quotation_id}/items",
    response_model=QuotationRead,
    summary="Add quotation item",
    description="Append a component; it receives the next free numeric id.",
)
async def add_quotation_item(
    payload: QuotationComponentCreate,
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
) -> QuotationRead:
    return QuotationRead.model_validate(await QuotationService(session).add_item(quotation_id, payload))


# PUBLIC_INTERFACE
@router.put(
    "/{quotation_id}/components/{component_id}",
    response_model=QuotationRead,
    summary="Update quotation component",
)
async def update_quotation_component(
    payload: QuotationComponentUpdate,
    quotation_id: UUID = Path(..., description="Quotation id"),
    component_id: str = Path(..., description="Component id"),
    session: AsyncSession = Depends(get_db_session),
) -> QuotationRead:
    updated = await QuotationService(session).update_component(quotation_id, component_id, payload)
    return QuotationRead.model_validate(updated)


# PUBLIC_INTERFACE
@router.post(
    "/{quotation_id}/send-to-ti",
    response_model=QuotationSyncResponse,
    summary="Send quotation to TI",
    description="Request a TI quote for every component and store the quote number and statuses.",
)
async def send_quotation_to_ti(
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> QuotationSyncResponse:
    quotation, response = await QuotationService(session, backlog).send_to_ti(quotation_id)
    return QuotationSyncResponse(
        message="Quotation sent to TI",
        quotation=QuotationRead.model_validate(quotation),
        ti_response=response,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{quotation_id}/query",
    response_model=QuotationSyncResponse,
    summary="Query TI quote",
    description="Refresh component status and TI unit price from the TI quote.",
)
async def query_quotation(
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> QuotationSyncResponse:
    quotation, response = await QuotationService(session, backlog).query_ti(quotation_id)
    return QuotationSyncResponse(quotation=QuotationRead.model_validate(quotation), ti_response=response)


# PUBLIC_INTERFACE
@router.post(
    "/{quotation_id}/update-moq-nq",
    response_model=QuotationRead,
    summary="Update MOQ/NQ",
    description="Replace the quote number, validity dates and component list from the TI quote confirmation.",
)
async def update_moq_nq(
    payload: MoqNqUpdate,
    quotation_id: UUID = Path(..., description="Quotation id"),
    session: AsyncSession = Depends(get_db_session),
) -> QuotationRead:
    return QuotationRead.model_validate(await QuotationService(session).update_moq_nq(quotation_id, payload))
