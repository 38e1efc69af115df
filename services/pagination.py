import math
from dataclasses import dataclass
from typing import Any

from services.defaults import ListingDefaults


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageInfo:
    current_page: int
    limit: int
    skip: int
    total_count: int
    total_pages: int
    has_more: bool

    @property
    def out_of_range(self) -> bool:
        """True when the window starts past the last matching record."""
        return self.skip >= self.total_count


def parse_positive_int(raw: Any, fallback: int) -> int:
    """Parse a query-string integer, falling back on absent, garbled or < 1 input."""
    if isinstance(raw, bool):
        return fallback
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError):
            return fallback
    return value if value >= 1 else fallback


def resolve_page(page: Any, limit: Any, defaults: ListingDefaults) -> PageRequest:
    return PageRequest(
        page=parse_positive_int(page, defaults.page),
        limit=min(parse_positive_int(limit, defaults.limit), defaults.max_limit),
    )


def paginate(request: PageRequest, total_count: int) -> PageInfo:
    skip = request.skip
    return PageInfo(
        current_page=request.page,
        limit=request.limit,
        skip=skip,
        total_count=total_count,
        total_pages=math.ceil(total_count / request.limit),
        has_more=skip + request.limit < total_count,
    )
