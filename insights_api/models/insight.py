"""
insight.py - The Insight record and its field groups.

Records arrive from two places (a JSON file or a MongoDB collection) with
loose typing: years as ints or strings, scores as numbers, "" or junk, ids as
ObjectIds, {"$oid": ...} exports or missing entirely. Everything is
normalised here, once, at the data-source boundary.
"""

import logging
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# ── Field groups ──────────────────────────────────────────────────────────────

# Exact-match filter dimensions, in the order the API documents them
FILTER_FIELDS = ("end_year", "topic", "sector", "region", "pestle", "source", "country")

# Free-text search targets
SEARCH_FIELDS = ("title", "insight", "topic", "sector")

# Scores - compared numerically when sorting
NUMERIC_FIELDS = ("intensity", "likelihood", "relevance")

STRING_FIELDS = (
    "end_year", "start_year",
    "topic", "sector", "region", "pestle", "source", "country",
    "insight", "title", "url", "impact", "added", "published",
)

SORTABLE_FIELDS = ("id",) + STRING_FIELDS + NUMERIC_FIELDS


class Insight(BaseModel):
    """One row of the analytics dataset. Serialised with `_id` for the frontend."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")

    end_year: str = ""
    start_year: str = ""

    intensity: Optional[float] = None
    likelihood: Optional[float] = None
    relevance: Optional[float] = None

    topic: str = ""
    sector: str = ""
    region: str = ""
    pestle: str = ""
    source: str = ""
    country: str = ""

    insight: str = ""
    title: str = ""
    url: str = ""
    impact: str = ""
    added: str = ""
    published: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # mongoexport writes ObjectIds as {"$oid": "..."}
        if isinstance(value, dict) and "$oid" in value:
            value = value["$oid"]
        if value is None or value == "":
            raise ValueError("insight id must not be empty")
        return str(value)

    @field_validator(*STRING_FIELDS, mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            raise ValueError("expected a string, got a boolean")
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator(*NUMERIC_FIELDS, mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, bool):
            raise ValueError("expected a number, got a boolean")
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            try:
                value = float(value)
            except ValueError:
                logger.warning("Non-numeric score %r treated as unset", value)
                return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value

    @classmethod
    def from_document(cls, doc: dict, position: int) -> "Insight":
        """Build from a raw document, falling back to its position when it has no `_id`."""
        if doc.get("_id") in (None, ""):
            doc = {**doc, "_id": position}
        return cls.model_validate(doc)
