"""
errors.py - Error taxonomy and the JSON error envelope.

Every failure that reaches the request boundary is rendered as:
  { "success": false, "message": "...", "error": "..." }

`error` carries the underlying detail and is omitted in production.

  NotFound               → 404  (unknown insight id)
  InvalidParameter       → 400  (malformed page / limit / sort input)
  DataSourceUnavailable  → 500  (JSON file or MongoDB unreachable / unparseable)
  Internal               → 500  (anything unexpected)
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from insights_api.core.config import settings
from insights_api.models.responses import ErrorResponse

logger = logging.getLogger(__name__)


class InsightsError(Exception):
    """Base class for errors translated into the JSON error envelope."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class NotFound(InsightsError):
    status_code = 404
    default_message = "Insight not found"


class InvalidParameter(InsightsError):
    status_code = 400
    default_message = "Invalid query parameter"


class DataSourceUnavailable(InsightsError):
    status_code = 500
    default_message = "Data source unavailable"


class Internal(InsightsError):
    pass


# ── Envelope ──────────────────────────────────────────────────────────────────

def error_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    if settings.environment == "production":
        error = None
    body = ErrorResponse(message=message, error=error or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ── Exception handlers (registered in main.py) ────────────────────────────────

async def insights_error_handler(request: Request, exc: InsightsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.error)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return error_response(exc.status_code, message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Invalid request", str(exc.errors()))


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = error_response(429, f"Rate limit exceeded: {exc.detail}")
    # Same header injection slowapi's stock handler performs
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_limit)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error", str(exc))
