from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.deps import get_db_session, require_webhook_auth
from src.schemas.webhook import WebhookAck
from src.services.order import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["TI Webhooks"], dependencies=[Depends(require_webhook_auth)])


# PUBLIC_INTERFACE
@router.post(
    "/ti-order-update",
    response_model=WebhookAck,
    summary="TI order update",
    description="Order status push from TI; requires HTTP Basic credentials.",
)
async def ti_order_update(
    body: Any = Body(...),
    session: AsyncSession = Depends(get_db_session),
) -> WebhookAck:
    logger.debug("TI order update: %s", body)
    order = await OrderService(session).apply_ti_update(body)
    return WebhookAck(message=f"Order {order.order_number} updated")


# PUBLIC_INTERFACE
@router.post(
    "/ti-logistics-update",
    response_model=WebhookAck,
    summary="TI logistics update",
    description="Shipment push from TI; logged and acknowledged.",
)
async def ti_logistics_update(body: Dict[str, Any] = Body(...)) -> WebhookAck:
    logger.info("Received TI logistics update: %s", body)
    return WebhookAck(message="Logistics update received")


# PUBLIC_INTERFACE
@router.post(
    "/ti-invoice-update",
    response_model=WebhookAck,
    summary="TI invoice update",
    description="Invoice push from TI; logged and acknowledged.",
)
async def ti_invoice_update(body: Dict[str, Any] = Body(...)) -> WebhookAck:
    logger.info("Received TI invoice update: %s", body)
    return WebhookAck(message="Invoice update received")
