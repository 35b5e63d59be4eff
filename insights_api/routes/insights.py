"""
insights.py - Insight listing, filter options, statistics and lookup.

Routes:
  GET /api/insights            - filtered, searched, sorted, paginated list
  GET /api/insights/filters    - distinct values for every filter dropdown
  GET /api/insights/stats      - basic stats + top-N group breakdowns
  GET /api/insights/{id}       - single insight (404 envelope when unknown)

  GET /api/filters, /api/stats - aliases used by the dashboard frontend

Errors are raised as InsightsError subclasses and rendered into the
{ success: false, message } envelope by the handlers in core/errors.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from insights_api.core.config import settings
from insights_api.core.context import InsightsContext, get_context
from insights_api.core.rate_limit import limiter
from insights_api.models.responses import (
    ErrorResponse,
    FilterOptionsResponse,
    InsightListResponse,
    InsightResponse,
    Pagination,
    StatsResponse,
)
from insights_api.services.aggregation import filter_options, summarize
from insights_api.services.query_engine import parse_query, run_query

logger = logging.getLogger(__name__)

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Malformed query parameter"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Data source unavailable"},
}

router = APIRouter(prefix="/api/insights", tags=["insights"], responses=_ERRORS)

# Legacy top-level aliases (/api/filters, /api/stats)
alias_router = APIRouter(prefix="/api", tags=["insights"], responses=_ERRORS)


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("", response_model=InsightListResponse)
@limiter.limit(settings.rate_limit_default)
async def list_insights(
    request: Request,
    end_year:   Optional[str] = Query(default=None),
    topic:      Optional[str] = Query(default=None),
    sector:     Optional[str] = Query(default=None),
    region:     Optional[str] = Query(default=None),
    pestle:     Optional[str] = Query(default=None),
    source:     Optional[str] = Query(default=None),
    country:    Optional[str] = Query(default=None),
    search:     Optional[str] = Query(default=None, description="Case-insensitive match on title, insight, topic, sector"),
    page:       Optional[str] = Query(default=None, description="1-based page number (default 1)"),
    limit:      Optional[str] = Query(default=None, description="Page size (default 50)"),
    sort_by:    Optional[str] = Query(default=None, alias="sortBy", description="Field to sort on (default added)"),
    sort_order: Optional[str] = Query(default=None, alias="sortOrder", description="asc | desc (default desc)"),
    context: InsightsContext = Depends(get_context),
):
    """
    Return one page of insights matching every supplied filter.

    A filter value of "all" (or empty) is ignored. Pagination values are
    taken as strings and validated here so malformed input yields a 400
    envelope instead of FastAPI's 422.
    """
    query = parse_query(
        {
            "end_year": end_year,
            "topic": topic,
            "sector": sector,
            "region": region,
            "pestle": pestle,
            "source": source,
            "country": country,
            "search": search,
            "page": page,
            "limit": limit,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        },
        default_limit=context.settings.default_page_limit,
        max_limit=context.settings.max_page_limit,
    )
    records = await context.source.records(query)
    result = run_query(records, query)
    logger.debug("Insight query %s matched %d records", query, result.total)

    return InsightListResponse(
        data=result.items,
        pagination=Pagination(
            total=result.total,
            page=result.page,
            total_pages=result.total_pages,
            limit=result.limit,
        ),
    )


@router.get("/filters", response_model=FilterOptionsResponse)
@limiter.limit(settings.rate_limit_default)
async def get_filter_options(request: Request, context: InsightsContext = Depends(get_context)):
    """Sorted distinct non-empty values for each of the seven filter fields."""
    records = await context.source.records()
    return FilterOptionsResponse(data=filter_options(records))


@router.get("/stats", response_model=StatsResponse)
@limiter.limit(settings.rate_limit_default)
async def get_stats(request: Request, context: InsightsContext = Depends(get_context)):
    """Dataset-wide averages plus top-10 / top-15 group breakdowns."""
    records = await context.source.records()
    return StatsResponse(data=summarize(records, context.settings.stats_exclude_missing))


@router.get(
    "/{insight_id}",
    response_model=InsightResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown insight id"}},
)
async def get_insight(insight_id: str, context: InsightsContext = Depends(get_context)):
    """Retrieve a single insight by id."""
    return InsightResponse(data=await context.source.get(insight_id))


# ── Aliases ───────────────────────────────────────────────────────────────────

alias_router.add_api_route("/filters", get_filter_options, methods=["GET"], response_model=FilterOptionsResponse)
alias_router.add_api_route("/stats", get_stats, methods=["GET"], response_model=StatsResponse)
