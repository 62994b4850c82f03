"""
Merge rules between local documents and TI backlog payloads.

Components are plain dicts as stored in the JSON columns. Every function here
is pure: inputs are never mutated, updated copies are returned.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.core.formatting import normalize_part_number

DELETED_STATUS = "deleted"


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _same_part(component: Dict[str, Any], line_item: Dict[str, Any]) -> bool:
    return normalize_part_number(component.get("name")) == normalize_part_number(line_item.get("tiPartNumber"))


# PUBLIC_INTERFACE
def find_line_item(component: Dict[str, Any], line_items: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Find the upstream line item for a component.

    An exact match on part number and TI line item number wins; otherwise the
    first line item with the same part number is returned.
    """
    candidates = [li for li in line_items if _same_part(component, li)]
    if not candidates:
        return None
    line_number = _as_str(component.get("ti_line_item_number"))
    if line_number is not None:
        for li in candidates:
            if _as_str(li.get("tiLineItemNumber")) == line_number:
                return li
    return candidates[0]


def confirmation_from_upstream(conf: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "ti_schedule_line_number": _as_str(conf.get("tiScheduleLineNumber")),
        "scheduled_quantity": conf.get("scheduledQuantity"),
        "estimated_ship_date": _as_str(conf.get("estimatedShipDate")),
        "estimated_delivery_date": _as_str(conf.get("estimatedDeliveryDate")),
        "estimated_delivery_date_status": _as_str(conf.get("estimatedDeliveryDateStatus")),
        "shipped_quantity": conf.get("shippedQuantity"),
        "unshipped_quantity": conf.get("unshippedQuantity"),
        "customer_requested_ship_date": _as_str(conf.get("customerRequestedShipDate")),
    }


# PUBLIC_INTERFACE
def merge_confirmations(line_item: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten the confirmations of every schedule of a line item."""
    merged: List[Dict[str, Any]] = []
    for schedule in line_item.get("schedules") or []:
        for conf in schedule.get("confirmations") or []:
            merged.append(confirmation_from_upstream(conf))
    return merged


# PUBLIC_INTERFACE
def apply_order_line_item(component: Dict[str, Any], line_item: Dict[str, Any]) -> Dict[str, Any]:
    """Overwrite a component with the state TI reports for its line item."""
    updated = dict(component)
    if line_item.get("status") is not None:
        updated["status"] = line_item["status"]
    if line_item.get("tiTotalOrderItemQuantity") is not None:
        updated["quantity"] = _as_int(line_item["tiTotalOrderItemQuantity"], updated.get("quantity", 0))
    if line_item.get("customerAnticipatedUnitPrice") is not None:
        updated["unit_price"] = _as_float(line_item["customerAnticipatedUnitPrice"], updated.get("unit_price", 0.0))
    if line_item.get("tiLineItemNumber") is not None:
        updated["ti_line_item_number"] = _as_str(line_item["tiLineItemNumber"])
    if line_item.get("tiPartNumber"):
        updated["name"] = str(line_item["tiPartNumber"]).strip()
    updated["confirmations"] = merge_confirmations(line_item)
    return updated


# PUBLIC_INTERFACE
def reconcile_order_components(
    components: List[Dict[str, Any]], orders: List[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Reconcile components against the line items of every returned upstream order.

    Returns the updated components and the number that found a match.
    """
    line_items = [li for order in orders for li in (order.get("lineItems") or [])]
    result: List[Dict[str, Any]] = []
    matched = 0
    for comp in components:
        line_item = find_line_item(comp, line_items)
        if line_item is None:
            result.append(dict(comp))
            continue
        matched += 1
        result.append(apply_order_line_item(comp, line_item))
    return result, matched


# PUBLIC_INTERFACE
def apply_submitted_line_items(
    components: List[Dict[str, Any]], line_items: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Copy status and TI line item number from a freshly placed order."""
    result: List[Dict[str, Any]] = []
    for comp in components:
        updated = dict(comp)
        line_item = next((li for li in line_items if _same_part(comp, li)), None)
        if line_item is not None:
            if line_item.get("status") is not None:
                updated["status"] = line_item["status"]
            if line_item.get("tiLineItemNumber") is not None:
                updated["ti_line_item_number"] = _as_str(line_item["tiLineItemNumber"])
        result.append(updated)
    return result


# PUBLIC_INTERFACE
def apply_order_update_line_item(component: Dict[str, Any], line_item: Dict[str, Any]) -> Dict[str, Any]:
    """
    Webhook variant of the line item merge: only fields present upstream are
    written. The first confirmation of the first schedule refreshes the first
    local confirmation.
    """
    updated = dict(component)
    if line_item.get("status"):
        updated["status"] = line_item["status"]
    if line_item.get("tiLineItemNumber") is not None:
        updated["ti_line_item_number"] = _as_str(line_item["tiLineItemNumber"])

    schedules = line_item.get("schedules") or []
    confirmations = (schedules[0].get("confirmations") or []) if schedules else []
    if confirmations:
        incoming = {k: v for k, v in confirmation_from_upstream(confirmations[0]).items() if v is not None}
        existing = list(updated.get("confirmations") or [])
        first = dict(existing[0]) if existing else {}
        first.update(incoming)
        updated["confirmations"] = [first] + existing[1:]
    return updated


# PUBLIC_INTERFACE
def apply_modified_line_item(
    component: Dict[str, Any],
    change: Dict[str, Any],
    line_item: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Merge a requested change and the line item TI returned for it.

    `change` carries the edited fields (name, quantity, delivery_date,
    quote_number, unit_price) plus `is_deleted`.
    """
    updated = dict(component)
    deleted = bool(change.get("is_deleted"))
    for key in ("name", "quantity", "delivery_date", "quote_number", "unit_price"):
        if change.get(key) is not None:
            updated[key] = change[key]

    if line_item is None:
        if deleted:
            updated["status"] = DELETED_STATUS
        return updated

    updated["status"] = DELETED_STATUS if deleted else line_item.get("status", updated.get("status"))
    if line_item.get("tiLineItemNumber") is not None:
        updated["ti_line_item_number"] = _as_str(line_item["tiLineItemNumber"])
    schedules = line_item.get("schedules") or []
    if schedules:
        first = schedules[0]
        if first.get("requestedQuantity") is not None:
            updated["quantity"] = _as_int(first["requestedQuantity"], updated.get("quantity", 0))
        if first.get("requestedDeliveryDate"):
            updated["delivery_date"] = str(first["requestedDeliveryDate"])
    if line_item.get("quoteNumber"):
        updated["quote_number"] = str(line_item["quoteNumber"])
    return updated


# PUBLIC_INTERFACE
def apply_quote_line_items(
    components: List[Dict[str, Any]],
    line_items: List[Dict[str, Any]],
    *,
    reset_status: Optional[str] = None,
    with_price: bool = False,
) -> List[Dict[str, Any]]:
    """
    Copy the upstream quote line status (and optionally `tiUnitPrice`) onto
    components matched by part number. When `reset_status` is given, every
    component takes it first so unmatched ones are still marked.
    """
    result: List[Dict[str, Any]] = []
    for comp in components:
        updated = dict(comp)
        if reset_status is not None:
            updated["status"] = reset_status
        line_item = next((li for li in line_items if _same_part(comp, li)), None)
        if line_item is not None:
            if line_item.get("status") is not None:
                updated["status"] = line_item["status"]
            if with_price and line_item.get("tiUnitPrice") is not None:
                updated["ti_price"] = _as_float(line_item["tiUnitPrice"], updated.get("ti_price", 0.0))
        result.append(updated)
    return result


def _dicts(value: Any) -> List[Dict[str, Any]]:
    return [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []


def _shipped_part_numbers(consolidated_info: Dict[str, Any]) -> set:
    parts = set()
    for booking in _dicts(consolidated_info.get("bookingOrderDetails")):
        for package in _dicts(booking.get("packageDetails")):
            for item in _dicts(package.get("itemDetails")):
                parts.add(normalize_part_number(item.get("tiPartNumber")))
    return parts


# PUBLIC_INTERFACE
def apply_shipment(
    components: List[Dict[str, Any]], consolidated_info: Dict[str, Any]
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Set shipping date, estimated arrival and carrier tracking number on every
    component whose part number appears in a shipped package.

    Returns the updated components and the number that matched.
    """
    shipped = _shipped_part_numbers(consolidated_info)
    result: List[Dict[str, Any]] = []
    matched = 0
    for comp in components:
        updated = dict(comp)
        if normalize_part_number(comp.get("name")) in shipped:
            matched += 1
            updated["shipping_date"] = _as_str(consolidated_info.get("shippingDate"))
            updated["estimated_date_of_arrival"] = _as_str(consolidated_info.get("estimatedDateOfArrival"))
            updated["carrier"] = _as_str(consolidated_info.get("carrierShipmentMasterTrackingNumber"))
        result.append(updated)
    return result, matched


def _line_total(component: Dict[str, Any]) -> float:
    return _as_float(component.get("quantity")) * _as_float(component.get("unit_price"))


# PUBLIC_INTERFACE
def quotation_total(components: Iterable[Dict[str, Any]]) -> float:
    return sum(_line_total(c) for c in components)


# PUBLIC_INTERFACE
def order_total(components: Iterable[Dict[str, Any]]) -> float:
    """Order total; deleted lines do not count."""
    return sum(_line_total(c) for c in components if c.get("status") != DELETED_STATUS)


# PUBLIC_INTERFACE
def next_component_id(components: Iterable[Dict[str, Any]]) -> str:
    """Smallest positive integer, as a string, not already used as a component id."""
    used = {str(c.get("id")) for c in components}
    n = 1
    while str(n) in used:
        n += 1
    return str(n)
