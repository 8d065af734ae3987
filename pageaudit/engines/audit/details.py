"""
Helpers for building the structured `details` payload of a product.
"""

from typing import Any, Dict, List, Optional, Sequence


def make_table_details(
    headings: Sequence[Dict[str, Any]],
    items: Sequence[Dict[str, Any]],
    *,
    wasted_ms: Optional[float] = None,
    sorted_by: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Table details. An empty table drops its headings so renderers can skip it.

    Each heading is {"key", "value_type", "label"}. sorted_by names the keys the
    items are already ordered by.
    """
    details: Dict[str, Any] = {
        "type": "table",
        "headings": list(headings) if items else [],
        "items": list(items),
    }
    if wasted_ms:
        details["summary"] = {"wasted_ms": wasted_ms}
    if sorted_by and items:
        details["sorted_by"] = list(sorted_by)
    return details
