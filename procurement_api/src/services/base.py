from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.errors import BacklogConfigError, BacklogResponseError
from src.clients.ti_backlog import TIBacklogClient


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def first_document(response: Any, key: str) -> Dict[str, Any]:
    """
    Return the first entry of a list-valued key of a TI response.

    Raises:
        BacklogResponseError: the key is missing or empty.
    """
    items = response.get(key) if isinstance(response, dict) else None
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        raise BacklogResponseError(f"TI response contains no {key}", body=response)
    return items[0]


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories
    and, for services that talk to TI, the shared backlog client.

    Services should keep business logic and orchestration, delegating data access
    to repositories.
    """

    def __init__(self, session: AsyncSession, backlog: Optional[TIBacklogClient] = None) -> None:
        self.session = session
        self._backlog = backlog

    @property
    def backlog(self) -> TIBacklogClient:
        if self._backlog is None:
            raise BacklogConfigError("TI backlog client is not configured")
        return self._backlog

    @staticmethod
    def api_log(operation_type: str) -> Dict[str, str]:
        return {"operation_type": operation_type, "timestamp": utcnow().isoformat()}

    @staticmethod
    def dump_components(models: List[Any]) -> List[Dict[str, Any]]:
        return [m.model_dump(mode="json") for m in models]
