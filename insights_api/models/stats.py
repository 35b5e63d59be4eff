"""
stats.py - Pydantic models for the aggregation endpoints.

Field names on the wire follow what the dashboard frontend reads
(camelCase for basic stats, Mongo-style `_id` for group keys).
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BasicStats(BaseModel):
    """Dataset-wide count, averages and intensity extremes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_records: int
    avg_intensity: float
    avg_likelihood: float
    avg_relevance: float
    max_intensity: float
    min_intensity: float


class GroupCount(BaseModel):
    """One bucket of a group-by-count breakdown."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")   # the distinct field value
    count: int


class FilterOptions(BaseModel):
    """All distinct non-empty values per filter field, sorted."""

    end_years: list[str]
    topics: list[str]
    sectors: list[str]
    regions: list[str]
    pestles: list[str]
    sources: list[str]
    countries: list[str]


class InsightStats(BaseModel):
    """Payload of GET /api/insights/stats."""

    basic: BasicStats
    topics: list[GroupCount]      # top 10
    sectors: list[GroupCount]     # top 10
    regions: list[GroupCount]     # top 15 (map)
    pestles: list[GroupCount]     # top 10
    countries: list[GroupCount]   # top 15 (map)
