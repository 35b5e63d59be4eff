"""
Strategic Insights API - Application entry point.

Bootstraps FastAPI, wires up middleware and error handlers, registers
route groups, and builds the read-only InsightsContext (settings + data
source) in the lifespan.

Run locally:
    uvicorn insights_api.main:app --reload --port 5000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from insights_api.core.config import settings
from insights_api.core.context import build_context
from insights_api.core.errors import (
    InsightsError,
    http_error_handler,
    insights_error_handler,
    rate_limit_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from insights_api.core.rate_limit import limiter
from insights_api.routes.health import API_VERSION
from insights_api.routes.health import router as health_router
from insights_api.routes.insights import alias_router as insights_alias_router
from insights_api.routes.insights import router as insights_router

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the request context on startup and release it on shutdown.

    Code before `yield` runs on startup; code after runs on shutdown.
    """
    logger.info(
        "Starting Strategic Insights API (env: %s, backend: %s)",
        settings.environment,
        settings.data_backend,
    )
    context = build_context(settings)
    await context.source.connect()
    app.state.context = context
    yield
    logger.info("Shutting down Strategic Insights API")
    await context.source.close()
    app.state.context = None


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Strategic Insights API",
    description=(
        "Filtering, search, pagination and aggregate statistics over the "
        "strategic insights dataset behind the analytics dashboard."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
# Attach the limiter to app state so slowapi can find it.
app.state.limiter = limiter

# ─── Error envelope ────────────────────────────────────────────────────────────
# Every failure leaves as { success: false, message, error? }
app.add_exception_handler(InsightsError, insights_error_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(health_router, prefix="/api/health", tags=["health"], include_in_schema=False)

app.include_router(insights_router)
app.include_router(insights_alias_router)


@app.get("/", tags=["root"])
async def root():
    """API root - basic metadata and endpoint map."""
    return {
        "name": "Strategic Insights API",
        "version": API_VERSION,
        "status": "running",
        "environment": settings.environment,
        "backend": settings.data_backend,
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "insights": "/api/insights",
            "filters": "/api/insights/filters",
            "stats": "/api/insights/stats",
            "singleInsight": "/api/insights/{id}",
        },
    }
