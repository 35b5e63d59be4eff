"""
Health check endpoint.

Used by:
  - Load balancers / container orchestrators
  - The dashboard frontend to check API connectivity

Returns status + data-source reachability + record count so callers can
distinguish between "API down" and "API up but data unreachable".
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from insights_api.core.config import settings
from insights_api.core.context import InsightsContext, get_optional_context
from insights_api.core.errors import InsightsError

logger = logging.getLogger(__name__)
router = APIRouter()

API_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str  # Always "ok" if the API process is alive
    version: str
    environment: str
    backend: str  # "json" | "mongo" | "memory"
    database: str  # "connected" | "disconnected"
    data_records: Optional[int] = Field(default=None, alias="dataRecords")
    timestamp: datetime


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check(context: Optional[InsightsContext] = Depends(get_optional_context)) -> HealthResponse:
    """
    Liveness status plus data-source reachability and record count.

    Always HTTP 200 while the process is alive, even when the data source
    is down - `database` and `dataRecords` carry that information.
    """
    db_status = "disconnected"
    records: Optional[int] = None
    if context is not None:
        if await context.source.ping():
            db_status = "connected"
        try:
            records = await context.source.count()
            db_status = "connected"
        except InsightsError as exc:
            logger.warning("Health check could not count records: %s", exc.message)

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        environment=settings.environment,
        backend=context.source.name if context is not None else settings.data_backend,
        database=db_status,
        data_records=records,
        timestamp=datetime.now(tz=timezone.utc),
    )
