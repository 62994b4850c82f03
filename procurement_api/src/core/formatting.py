"""Value normalization shared by the schemas, repositories, services and the TI client."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

DateLike = Union[str, date, datetime, None]


# PUBLIC_INTERFACE
def normalize_part_number(value: Any) -> str:
    """Trimmed, lower-cased part number used for matching."""
    return str(value or "").strip().lower()


# PUBLIC_INTERFACE
def iso_date(value: DateLike) -> Optional[str]:
    """
    Render a date as YYYY-MM-DD. Accepts dates, datetimes and ISO 8601 strings
    (a trailing time part is dropped). Blank values give None.

    Raises:
        ValueError: the string is not an ISO 8601 date or timestamp.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        if "T" in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValueError(f"Invalid date {text!r}, expected YYYY-MM-DD") from None


# PUBLIC_INTERFACE
def amount_string(amount: Union[int, float, str, Decimal]) -> str:
    """Shortest decimal text for an amount: 100.0 -> "100", 42.50 -> "42.5"."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Invalid amount {amount!r}") from None
    if not value.is_finite():
        raise ValueError(f"Invalid amount {amount!r}")
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
