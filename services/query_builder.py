import re
from dataclasses import dataclass, field
from typing import Any

from pymongo import ASCENDING, DESCENDING

from services.defaults import ListingDefaults

SortSpec = list[tuple[str, int]]

FEATURED_ORDER: SortSpec = [("featured", DESCENDING), ("createdAt", DESCENDING)]

SORT_OPTIONS: dict[str, SortSpec] = {
    "price-low": [("price", ASCENDING)],
    "price-high": [("price", DESCENDING)],
    "newest": [("createdAt", DESCENDING)],
    "rating": [("rating.average", DESCENDING)],
    "featured": FEATURED_ORDER,
}


@dataclass
class ProductQuery:
    filter: dict[str, Any] = field(default_factory=dict)
    sort: SortSpec = field(default_factory=lambda: list(FEATURED_ORDER))


def search_filter(term: str) -> dict[str, Any]:
    """Case-insensitive substring match on name, description or any tag."""
    pattern = {"$regex": re.escape(term), "$options": "i"}
    return {
        "$or": [
            {"name": pattern},
            {"description": pattern},
            {"tags": pattern},
        ]
    }


def resolve_sort(sort: str | None, defaults: ListingDefaults) -> SortSpec:
    key = (sort or defaults.sort).strip()
    return list(SORT_OPTIONS.get(key, SORT_OPTIONS.get(defaults.sort, FEATURED_ORDER)))


def build_query(
    search: str | None,
    category: str | None,
    sort: str | None,
    defaults: ListingDefaults,
) -> ProductQuery:
    """
    Translate listing parameters into a MongoDB filter and sort.

    An empty search or the all-categories sentinel leaves that facet out;
    an unknown sort key falls back to the default ordering.
    """
    query_filter: dict[str, Any] = {}

    term = (search or "").strip()
    if term:
        query_filter.update(search_filter(term))

    category = (category or "").strip()
    if category and category != defaults.all_categories:
        query_filter["category"] = category

    return ProductQuery(filter=query_filter, sort=resolve_sort(sort, defaults))
