from __future__ import annotations

from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Acknowledgement returned to TI push notifications."""
    success: bool = True
    message: str
