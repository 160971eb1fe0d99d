# docstore/normalizers/pagination.py
from typing import Any, Callable, Dict, List, Optional


def normalize_pagination(
    items: List[Any],
    normalize_fn: Callable[[Any], Dict[str, Any]],
    *,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    total: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Wrap one page of an offset listing.

    {"items": [...], "pagination": {"page", "per_page", "total", "total_pages", "has_more"}}

    The pagination block is left out when page or per_page is unknown,
    and the totals when total is.
    """
    response: Dict[str, Any] = {"items": [normalize_fn(item) for item in items]}
    if page is None or per_page is None:
        return response

    meta: Dict[str, Any] = {"page": page, "per_page": per_page}
    if total is not None:
        total_pages = -(-total // per_page)
        meta.update(total=total, total_pages=total_pages, has_more=page < total_pages)

    response["pagination"] = meta
    return response
