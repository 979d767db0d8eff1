"""
Standard API response envelopes.

- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error:   { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }
  (built by the exception handlers in main.py)
"""
from typing import Any

from pydantic import BaseModel


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Wrap a payload in the success envelope.

    Pydantic models are dumped by alias so clients see camelCase keys.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def paginated_response(
    items: list[Any],
    limit: int,
    offset: int = 0,
    total: int | None = None,
) -> dict[str, Any]:
    """
    Success envelope for a page of items.

    Returns:
        dict: { "success": true, "data": <items>, "meta": { "limit", "offset", "total", "hasMore" } }
    """
    if total is None:
        total = len(items)

    meta = {
        "limit": limit,
        "offset": offset,
        "total": total,
        "hasMore": (offset + limit) < total,
    }
    return success_response(data=items, meta=meta)
