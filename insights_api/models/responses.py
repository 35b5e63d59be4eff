"""
responses.py - Success / error envelopes returned by the insight routes.

Success: { "success": true,  "data": ... }
Error:   { "success": false, "message": "...", "error": "..." }
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from insights_api.models.insight import Insight
from insights_api.models.stats import FilterOptions, InsightStats


class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int
    page: int
    total_pages: int
    limit: int


class InsightListResponse(BaseModel):
    success: bool = True
    data: list[Insight]
    pagination: Pagination


class InsightResponse(BaseModel):
    success: bool = True
    data: Insight


class FilterOptionsResponse(BaseModel):
    success: bool = True
    data: FilterOptions


class StatsResponse(BaseModel):
    success: bool = True
    data: InsightStats


class ErrorResponse(BaseModel):
    """Documented shape of every error body (see core/errors.py)."""
    success: bool = False
    message: str
    error: Optional[str] = None
