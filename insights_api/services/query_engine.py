"""
query_engine.py - Filter, search, sort and paginate insight records.

Pure functions over an immutable record sequence; the same code runs for
the JSON and MongoDB backings so both return identical pages.

USAGE
─────
    from insights_api.services.query_engine import parse_query, run_query

    query  = parse_query({"topic": "oil", "page": "2", "limit": "20"})
    result = run_query(records, query)
    # result.items        → records 21-40 of the matches, by "added" descending
    # result.total        → number of matches before pagination
    # result.total_pages  → ceil(total / limit)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil
from typing import Callable, Mapping, Optional, Sequence

from insights_api.core.errors import InvalidParameter
from insights_api.models.insight import (
    FILTER_FIELDS,
    NUMERIC_FIELDS,
    SEARCH_FIELDS,
    SORTABLE_FIELDS,
    Insight,
)

DEFAULT_PAGE_LIMIT = 50
DEFAULT_MAX_LIMIT = 1000
DEFAULT_SORT_BY = "added"
DEFAULT_SORT_ORDER = "desc"

# A filter carrying exactly this value is the same as no filter
ALL_SENTINEL = "all"


@dataclass(frozen=True)
class InsightQuery:
    """Validated query: equality filters, search term, sort and page window."""

    filters: dict[str, str] = field(default_factory=dict)
    search: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER


@dataclass(frozen=True)
class QueryResult:
    items: list[Insight]
    total: int
    page: int
    limit: int
    total_pages: int


# ── Parameter parsing ─────────────────────────────────────────────────────────

def _parse_positive_int(raw: Optional[str], name: str, default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise InvalidParameter(f"'{name}' must be a positive integer, got {raw!r}")
    if value < 1:
        raise InvalidParameter(f"'{name}' must be at least 1, got {value}")
    return value


def parse_query(
    params: Mapping[str, Optional[str]],
    *,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> InsightQuery:
    """
    Validate raw request parameters into an InsightQuery.

    Recognised keys: the seven filter fields, search, page, limit,
    sortBy, sortOrder. Anything else is ignored.
    Raises InvalidParameter instead of silently falling back to defaults.
    """
    filters: dict[str, str] = {}
    for name in FILTER_FIELDS:
        value = params.get(name)
        if value and value != ALL_SENTINEL:
            filters[name] = value

    search = (params.get("search") or "").strip() or None

    page = _parse_positive_int(params.get("page"), "page", 1)
    limit = _parse_positive_int(params.get("limit"), "limit", default_limit)
    if limit > max_limit:
        raise InvalidParameter(f"'limit' must not exceed {max_limit}, got {limit}")

    sort_by = (params.get("sortBy") or DEFAULT_SORT_BY).strip()
    if sort_by == "_id":
        sort_by = "id"
    if sort_by not in SORTABLE_FIELDS:
        raise InvalidParameter(
            f"'sortBy' must be one of {', '.join(SORTABLE_FIELDS)}; got {sort_by!r}"
        )

    sort_order = (params.get("sortOrder") or DEFAULT_SORT_ORDER).strip().lower()
    if sort_order not in ("asc", "desc"):
        raise InvalidParameter(f"'sortOrder' must be 'asc' or 'desc', got {sort_order!r}")

    return InsightQuery(
        filters=filters,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ── Filtering ─────────────────────────────────────────────────────────────────

def matches(record: Insight, query: InsightQuery) -> bool:
    """Equality filters AND case-insensitive substring search."""
    for name, value in query.filters.items():
        if getattr(record, name) != value:
            return False
    if query.search:
        needle = query.search.lower()
        return any(needle in getattr(record, name).lower() for name in SEARCH_FIELDS)
    return True


def filter_records(records: Sequence[Insight], query: InsightQuery) -> list[Insight]:
    return [r for r in records if matches(r, query)]


# ── Sorting ───────────────────────────────────────────────────────────────────

def _sort_key(sort_by: str) -> Callable[[Insight], object]:
    if sort_by in NUMERIC_FIELDS:
        # Missing scores sort as 0
        return lambda r: getattr(r, sort_by) or 0.0
    return lambda r: getattr(r, sort_by).lower()


def sort_records(records: Sequence[Insight], sort_by: str, sort_order: str) -> list[Insight]:
    """
    Stable sort. Equal keys keep dataset order in both directions
    (sorted(reverse=True) preserves the relative order of ties).
    """
    return sorted(records, key=_sort_key(sort_by), reverse=sort_order == "desc")


# ── Pagination ────────────────────────────────────────────────────────────────

def paginate(records: Sequence[Insight], page: int, limit: int) -> list[Insight]:
    start = (page - 1) * limit
    return list(records[start:start + limit])


def total_pages(total: int, limit: int) -> int:
    return ceil(total / limit)


def run_query(records: Sequence[Insight], query: InsightQuery) -> QueryResult:
    """Filter → sort → paginate. `total` counts matches before pagination."""
    matched = filter_records(records, query)
    ordered = sort_records(matched, query.sort_by, query.sort_order)
    return QueryResult(
        items=paginate(ordered, query.page, query.limit),
        total=len(matched),
        page=query.page,
        limit=query.limit,
        total_pages=total_pages(len(matched), query.limit),
    )
