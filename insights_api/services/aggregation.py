"""
aggregation.py - Dashboard statistics over the full insight dataset.

Every function scans the whole sequence on each call and keeps no state,
so any number of requests can aggregate concurrently.

Two breakdown caps are in use and are kept as separate operations:
  top_items()     - N = 10, feeds the "top topics / sectors / PESTLE" charts
  geo_breakdown() - N = 15, feeds the region / country map
"""

from __future__ import annotations

from typing import Optional, Sequence

from insights_api.models.insight import FILTER_FIELDS, Insight
from insights_api.models.stats import BasicStats, FilterOptions, GroupCount, InsightStats

TOP_ITEMS_LIMIT = 10
GEO_BREAKDOWN_LIMIT = 15

# Filter field → key in the /filters payload
_OPTION_KEYS = {
    "end_year": "end_years",
    "topic": "topics",
    "sector": "sectors",
    "region": "regions",
    "pestle": "pestles",
    "source": "sources",
    "country": "countries",
}


# ── Basic statistics ──────────────────────────────────────────────────────────

def _scores(records: Sequence[Insight], name: str, exclude_missing: bool) -> list[float]:
    values: list[Optional[float]] = [getattr(r, name) for r in records]
    if exclude_missing:
        return [v for v in values if v is not None]
    return [v or 0.0 for v in values]


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def basic_stats(records: Sequence[Insight], exclude_missing: bool = False) -> BasicStats:
    """
    Record count, mean intensity / likelihood / relevance, and intensity range.

    By default a missing score counts as 0 in sums, averages and min/max.
    With exclude_missing=True it is skipped entirely. No values at all → 0.0.
    """
    intensity = _scores(records, "intensity", exclude_missing)
    return BasicStats(
        total_records=len(records),
        avg_intensity=_mean(intensity),
        avg_likelihood=_mean(_scores(records, "likelihood", exclude_missing)),
        avg_relevance=_mean(_scores(records, "relevance", exclude_missing)),
        max_intensity=max(intensity, default=0.0),
        min_intensity=min(intensity, default=0.0),
    )


# ── Group breakdowns ──────────────────────────────────────────────────────────

def group_counts(records: Sequence[Insight], field: str) -> list[GroupCount]:
    """Count per distinct non-empty value, most frequent first; ties keep first-seen order."""
    counts: dict[str, int] = {}
    for record in records:
        value = getattr(record, field)
        if value:
            counts[value] = counts.get(value, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [GroupCount(id=value, count=count) for value, count in ranked]


def top_items(records: Sequence[Insight], field: str, limit: int = TOP_ITEMS_LIMIT) -> list[GroupCount]:
    return group_counts(records, field)[:limit]


def geo_breakdown(records: Sequence[Insight], field: str, limit: int = GEO_BREAKDOWN_LIMIT) -> list[GroupCount]:
    return group_counts(records, field)[:limit]


# ── Filter options ────────────────────────────────────────────────────────────

def distinct_values(records: Sequence[Insight], field: str) -> list[str]:
    return sorted({getattr(r, field) for r in records} - {""})


def filter_options(records: Sequence[Insight]) -> FilterOptions:
    """Every distinct non-empty value of each filter field - no counts, no cap."""
    return FilterOptions(**{_OPTION_KEYS[name]: distinct_values(records, name) for name in FILTER_FIELDS})


# ── Combined payload ──────────────────────────────────────────────────────────

def summarize(records: Sequence[Insight], exclude_missing: bool = False) -> InsightStats:
    return InsightStats(
        basic=basic_stats(records, exclude_missing),
        topics=top_items(records, "topic"),
        sectors=top_items(records, "sector"),
        regions=geo_breakdown(records, "region"),
        pestles=top_items(records, "pestle"),
        countries=geo_breakdown(records, "country"),
    )
