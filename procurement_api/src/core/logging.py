from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | %(message)s"
UPSTREAM_LOGGER = "src.clients"

Level = Union[int, str]


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the correlation id of the request being served ("-" outside one)."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.correlation_id = correlation_id_var.get() or "-"
        return True


def _level(value: Level) -> Level:
    return value.upper() if isinstance(value, str) else value


# PUBLIC_INTERFACE
def configure_logging(level: Level = logging.INFO, upstream_level: Optional[Level] = None) -> None:
    """
    Install a single stdout handler on the root logger.

    upstream_level sets the TI client loggers independently, so request and
    response bodies logged at DEBUG can be switched on without a noisy root.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(_level(level))

    logging.getLogger(UPSTREAM_LOGGER).setLevel(_level(upstream_level) if upstream_level else logging.NOTSET)
    logging.getLogger("httpx").setLevel(logging.WARNING)
