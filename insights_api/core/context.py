"""
context.py - The read-only request context.

Built once in the FastAPI lifespan, stored on app.state, and handed to
route handlers through the get_context dependency. Tests replace it with
app.dependency_overrides[get_optional_context].
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from insights_api.core.config import Settings
from insights_api.core.errors import DataSourceUnavailable
from insights_api.services.data_source import InsightSource, JsonInsightSource, MongoInsightSource


@dataclass(frozen=True)
class InsightsContext:
    settings: Settings
    source: InsightSource


def build_source(settings: Settings) -> InsightSource:
    """Pick the data source named by settings.data_backend."""
    if settings.data_backend == "mongo":
        return MongoInsightSource(settings.mongo_uri, settings.mongo_db_name, settings.mongo_collection)
    return JsonInsightSource(settings.data_path, reload_per_request=settings.reload_per_request)


def build_context(settings: Settings) -> InsightsContext:
    return InsightsContext(settings=settings, source=build_source(settings))


def get_optional_context(request: Request) -> Optional[InsightsContext]:
    """FastAPI dependency - the context, or None before startup has run."""
    return getattr(request.app.state, "context", None)


def get_context(context: Optional[InsightsContext] = Depends(get_optional_context)) -> InsightsContext:
    """FastAPI dependency - the context; fails with DataSourceUnavailable if missing."""
    if context is None:
        raise DataSourceUnavailable(error="application context is not initialised")
    return context
