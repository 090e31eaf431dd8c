"""Page/limit parsing and pagination metadata for search results."""

import math
from dataclasses import dataclass
from typing import Any, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    limit: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_page_request(page: Any = None, limit: Any = None,
                       default_limit: int = DEFAULT_LIMIT,
                       max_limit: int = MAX_LIMIT) -> PageRequest:
    """Coerce raw page/limit values; anything missing, invalid or < 1 falls back."""
    return PageRequest(
        page=_positive_int(page, 1),
        limit=min(_positive_int(limit, default_limit), max_limit),
    )


def paginate(items: Sequence[T], request: PageRequest, total: int) -> tuple[list[T], Pagination]:
    """Truncate *items* to one page; *total* is the canonical count, not len(items)."""
    total = max(0, total)
    page_items = list(items[:request.limit])
    pagination = Pagination(
        total=total,
        page=request.page,
        limit=request.limit,
        total_pages=math.ceil(total / request.limit),
    )
    return page_items, pagination
