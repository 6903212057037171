# ============================================================================
# FILE: musicvault/core/pagination.py
# ============================================================================
import math
from typing import List, Optional, Sequence, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 1000


class Pagination(BaseModel):
    """Pagination info attached to every list response"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


def paginate(items: Sequence[T], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> Tuple[List[T], Pagination]:
    """
    Slice one page out of items.

    The page is clamped to [1, total_pages]; an empty collection still has
    one (empty) page so a request past the end lands on the last page.
    """
    limit = max(1, limit)
    total = len(items)
    total_pages = max(1, math.ceil(total / limit))
    page = max(1, min(page, total_pages))
    start = (page - 1) * limit
    data = list(items[start:start + limit])
    return data, Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def _parse_positive_int(value: Union[str, int, None]) -> Optional[int]:
    if value is None:
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def parse_pagination_params(
    page: Union[str, int, None],
    limit: Union[str, int, None],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Tuple[int, int]:
    """Turn raw query values into (page, limit), falling back to defaults"""
    parsed_page = _parse_positive_int(page) or DEFAULT_PAGE
    parsed_limit = _parse_positive_int(limit)
    parsed_limit = default_limit if parsed_limit is None else min(parsed_limit, max_limit)
    return parsed_page, parsed_limit


def paginated_response(data: list, pagination: Pagination) -> dict:
    return {
        "success": True,
        "data": data,
        "pagination": pagination.model_dump(by_alias=True),
    }
