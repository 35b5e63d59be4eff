"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading. Every field can be overridden with the upper-cased
env var of the same name (e.g. DATA_BACKEND=mongo).

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── Data source ───────────────────────────────────────────────
    # "json"  - materialise data_path in memory
    # "mongo" - query the insights collection through Motor
    data_backend: Literal["json", "mongo"] = "json"
    data_path: str = "data/jsondata.json"
    # Re-read the JSON file on every request instead of once at startup
    reload_per_request: bool = False

    # ─── MongoDB ───────────────────────────────────────────────────
    mongo_uri: str = "mongodb://localhost:27017/insights_dashboard"
    mongo_db_name: str = "insights_dashboard"
    mongo_collection: str = "insights"

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins (the Vite dev server by default).
    cors_origins_str: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── Query limits ──────────────────────────────────────────────
    default_page_limit: int = Field(default=50, ge=1)
    max_page_limit: int = Field(default=1000, ge=1)

    # ─── Statistics ────────────────────────────────────────────────
    # False: missing intensity/likelihood/relevance count as 0.
    # True:  missing values are left out of the average's denominator.
    stats_exclude_missing: bool = False

    # ─── Rate limiting ─────────────────────────────────────────────
    rate_limit_default: str = "120/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )


# Module-level singleton - import this everywhere instead of instantiating Settings()
settings = Settings()
