from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.ti_backlog import TIBacklogClient
from src.core.deps import get_backlog_client, get_db_session
from src.schemas.common import MessageResponse
from src.schemas.remittance import (
    RemittanceCreate,
    RemittanceItem,
    RemittanceRead,
    RemittanceSendRequest,
    RemittanceSendResponse,
)
from src.services.remittance import RemittanceService

router = APIRouter(prefix="/remittance-notifications", tags=["Remittances"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[RemittanceRead],
    summary="List remittance notifications",
    description="Newest first; search matches the remittance number or any item invoice number (substring).",
)
async def list_remittances(
    session: AsyncSession = Depends(get_db_session),
    search: Optional[str] = Query(None),
) -> List[RemittanceRead]:
    rows = await RemittanceService(session).list_notifications(search=search)
    return [RemittanceRead.model_validate(r) for r in rows]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=RemittanceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create remittance notification",
)
async def create_remittance(
    payload: RemittanceCreate,
    session: AsyncSession = Depends(get_db_session),
) -> RemittanceRead:
    return RemittanceRead.model_validate(await RemittanceService(session).create_notification(payload))


# PUBLIC_INTERFACE
@router.post(
    "/send-to-ti",
    response_model=RemittanceSendResponse,
    summary="Send remittance advice",
    description="Send a single-invoice remittance advice to TI.",
)
async def send_remittance(
    payload: RemittanceSendRequest,
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> RemittanceSendResponse:
    response = await RemittanceService(session, backlog).send_one(payload)
    return RemittanceSendResponse(response=response)


# PUBLIC_INTERFACE
@router.delete(
    "/{notification_id}",
    response_model=MessageResponse,
    summary="Delete remittance notification",
)
async def delete_remittance(
    notification_id: UUID = Path(..., description="Remittance notification id"),
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await RemittanceService(session).delete_notification(notification_id)
    return MessageResponse(message="Remittance notification deleted")


# PUBLIC_INTERFACE
@router.put(
    "/{notification_id}/items/{index}",
    response_model=RemittanceRead,
    summary="Update remittance item",
)
async def update_remittance_item(
    payload: RemittanceItem,
    notification_id: UUID = Path(..., description="Remittance notification id"),
    index: int = Path(..., description="Zero-based item index"),
    session: AsyncSession = Depends(get_db_session),
) -> RemittanceRead:
    row = await RemittanceService(session).update_item(notification_id, index, payload)
    return RemittanceRead.model_validate(row)


# PUBLIC_INTERFACE
@router.delete(
    "/{notification_id}/items/{index}",
    response_model=RemittanceRead,
    summary="Delete remittance item",
)
async def delete_remittance_item(
    notification_id: UUID = Path(..., description="Remittance notification id"),
    index: int = Path(..., description="Zero-based item index"),
    session: AsyncSession = Depends(get_db_session),
) -> RemittanceRead:
    row = await RemittanceService(session).delete_item(notification_id, index)
    return RemittanceRead.model_validate(row)


# PUBLIC_INTERFACE
@router.post(
    "/{notification_id}/send-to-ti",
    response_model=RemittanceSendResponse,
    summary="Send stored remittance notification",
    description="Send every item of the notification to TI as one remittance advice.",
)
async def send_stored_remittance(
    notification_id: UUID = Path(..., description="Remittance notification id"),
    session: AsyncSession = Depends(get_db_session),
    backlog: TIBacklogClient = Depends(get_backlog_client),
) -> RemittanceSendResponse:
    response = await RemittanceService(session, backlog).send_stored(notification_id)
    return RemittanceSendResponse(response=response)
