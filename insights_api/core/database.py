"""
MongoDB connection management using Motor (async driver).

Each MongoInsightSource owns one DatabaseClient; the connection is opened
from the FastAPI lifespan (startup) and closed on shutdown.

Local dev: connects to a local mongod.
Production: connects to MongoDB Atlas (same code, different URI).
"""

import logging
import re

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    Holds the Motor client and selected database.

    Both attributes stay None while disconnected, which is how callers
    detect degraded mode. Tests swap in fakes by assigning them directly.
    """

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None


async def connect_to_mongo(db_client: DatabaseClient, uri: str, db_name: str) -> None:
    """
    Create the MongoDB connection and validate it with a ping.

    Fails gracefully if MongoDB is unavailable - the API still starts and
    the health check reports "disconnected"; data endpoints answer with a
    DataSourceUnavailable error envelope.
    """
    logger.info("Connecting to MongoDB at %s", _redact_uri(uri))
    try:
        options: dict = {"serverSelectionTimeoutMS": 5000}
        if _uses_tls(uri):
            # certifi's CA bundle keeps Atlas TLS working without system certs
            options["tlsCAFile"] = certifi.where()
        db_client.client = AsyncIOMotorClient(uri, **options)
        db_client.db = db_client.client[db_name]
        await db_client.client.admin.command("ping")
        logger.info("MongoDB connection established (db: %s)", db_name)
    except Exception as exc:
        logger.warning(
            "MongoDB unavailable at startup: %s. "
            "API running in degraded mode - insight endpoints will fail.",
            exc,
        )
        db_client.client = None
        db_client.db = None


async def close_mongo_connection(db_client: DatabaseClient) -> None:
    """Close the MongoDB connection gracefully on app shutdown."""
    if db_client.client is not None:
        db_client.client.close()
        db_client.client = None
        db_client.db = None
        logger.info("MongoDB connection closed")


def _uses_tls(uri: str) -> bool:
    lowered = uri.lower()
    return lowered.startswith("mongodb+srv://") or "tls=true" in lowered or "ssl=true" in lowered


def _redact_uri(uri: str) -> str:
    """Strip credentials from URI before logging."""
    return re.sub(r"://[^:]+:[^@]+@", "://<redacted>@", uri)
