"""
data_source.py - Where insight records come from.

Three interchangeable sources share one interface:

  MemoryInsightSource  - a fixed, already-validated record tuple
  JsonInsightSource    - a JSON array on disk, loaded once or per request
  MongoInsightSource   - a MongoDB collection via Motor

Sources only supply records. Filtering, sorting and aggregation always run
in services/query_engine.py and services/aggregation.py; the Mongo source
additionally pushes the same equality/search predicates down to the server
as a narrowing pre-filter, which the engine then re-applies.

Any failure to reach or parse the backing store surfaces as
DataSourceUnavailable.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from insights_api.core.database import DatabaseClient, close_mongo_connection, connect_to_mongo
from insights_api.core.errors import DataSourceUnavailable, NotFound
from insights_api.models.insight import SEARCH_FIELDS, Insight
from insights_api.services.query_engine import InsightQuery

logger = logging.getLogger(__name__)


# ── Boundary validation ───────────────────────────────────────────────────────

def parse_documents(docs: Iterable[dict]) -> tuple[Insight, ...]:
    """Validate raw documents into Insight records; ids must be unique."""
    records: list[Insight] = []
    seen: set[str] = set()
    for position, doc in enumerate(docs):
        if not isinstance(doc, dict):
            raise DataSourceUnavailable(
                "Malformed insight data",
                error=f"record {position} is a {type(doc).__name__}, expected an object",
            )
        try:
            record = Insight.from_document(doc, position)
        except ValidationError as exc:
            raise DataSourceUnavailable("Malformed insight data", error=f"record {position}: {exc}")
        if record.id in seen:
            raise DataSourceUnavailable("Malformed insight data", error=f"duplicate insight id {record.id!r}")
        seen.add(record.id)
        records.append(record)
    return tuple(records)


def load_insights_file(path: Path) -> tuple[Insight, ...]:
    """Read and validate a JSON array of insight documents."""
    try:
        with path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError:
        raise DataSourceUnavailable("Insight data file not found", error=str(path))
    except (OSError, json.JSONDecodeError) as exc:
        raise DataSourceUnavailable("Insight data file could not be read", error=str(exc))

    if not isinstance(raw, list):
        raise DataSourceUnavailable("Malformed insight data", error="top-level JSON value must be an array")
    return parse_documents(raw)


# ── Interface ─────────────────────────────────────────────────────────────────

class InsightSource:
    """Base class: read-only access to the insight collection."""

    name = "base"

    async def connect(self) -> None:
        """Startup hook (lifespan)."""

    async def close(self) -> None:
        """Shutdown hook (lifespan)."""

    async def records(self, query: Optional[InsightQuery] = None) -> Sequence[Insight]:
        """
        Return the records in dataset order.

        `query` is a hint only: a source may drop records that cannot match
        it, but callers must still run the query engine over the result.
        """
        raise NotImplementedError

    async def get(self, insight_id: str) -> Insight:
        for record in await self.records():
            if record.id == insight_id:
                return record
        raise NotFound()

    async def count(self) -> int:
        return len(await self.records())

    async def ping(self) -> bool:
        raise NotImplementedError


class MemoryInsightSource(InsightSource):
    """A fully materialised, immutable record collection."""

    name = "memory"

    def __init__(self, records: Iterable[Insight] = ()):
        self._records: Optional[tuple[Insight, ...]] = tuple(records)

    async def records(self, query: Optional[InsightQuery] = None) -> Sequence[Insight]:
        return self._records or ()

    async def ping(self) -> bool:
        return self._records is not None


class JsonInsightSource(MemoryInsightSource):
    """
    Insight records read from a JSON file.

    reload_per_request=False: parsed once at startup and cached.
    reload_per_request=True:  parsed again on every call (off the event loop).

    A file that is missing or broken at startup leaves the source in
    degraded mode; each later call retries the load.
    """

    name = "json"

    def __init__(self, path: str | Path, reload_per_request: bool = False):
        self.path = Path(path)
        self.reload_per_request = reload_per_request
        self._records = None

    async def _load(self) -> tuple[Insight, ...]:
        return await asyncio.to_thread(load_insights_file, self.path)

    async def connect(self) -> None:
        if self.reload_per_request:
            logger.info("JSON source will re-read %s on every request", self.path)
            return
        try:
            self._records = await self._load()
            logger.info("Loaded %d insight records from %s", len(self._records), self.path)
        except DataSourceUnavailable as exc:
            logger.warning(
                "Insight data unavailable at startup: %s (%s). "
                "API running in degraded mode - insight endpoints will fail.",
                exc.message,
                exc.error,
            )

    async def records(self, query: Optional[InsightQuery] = None) -> Sequence[Insight]:
        if self.reload_per_request:
            return await self._load()
        if self._records is None:
            self._records = await self._load()
        return self._records

    async def ping(self) -> bool:
        if self.reload_per_request:
            return self.path.is_file()
        return self._records is not None


# ── MongoDB ───────────────────────────────────────────────────────────────────

def build_mongo_filter(query: Optional[InsightQuery]) -> dict:
    """
    Translate an InsightQuery into a Mongo filter document.

    Search uses an escaped, case-insensitive regex per field so the server
    applies the same substring semantics as query_engine.matches().
    """
    if query is None:
        return {}
    mongo_filter: dict = {name: _equality(value) for name, value in query.filters.items()}
    if query.search:
        pattern = re.escape(query.search)
        mongo_filter["$or"] = [
            {name: {"$regex": pattern, "$options": "i"}} for name in SEARCH_FIELDS
        ]
    return mongo_filter


def _equality(value: str):
    # Insight stringifies integers (end_year: 2027 -> "2027"); the stored
    # document may still hold the number.
    try:
        number = int(value)
    except ValueError:
        return value
    if str(number) != value:
        return value
    return {"$in": [value, number]}


def _id_filter(insight_id: str) -> dict:
    # Imported documents carry ObjectIds; hand-loaded ones may use plain strings
    if ObjectId.is_valid(insight_id):
        return {"_id": {"$in": [ObjectId(insight_id), insight_id]}}
    return {"_id": insight_id}


class MongoInsightSource(InsightSource):
    """Insight records stored in a MongoDB collection (see scripts/seed_db.py)."""

    name = "mongo"

    def __init__(self, uri: str, db_name: str, collection: str = "insights"):
        self.uri = uri
        self.db_name = db_name
        self.collection_name = collection
        self.db_client = DatabaseClient()

    async def connect(self) -> None:
        await connect_to_mongo(self.db_client, self.uri, self.db_name)

    async def close(self) -> None:
        await close_mongo_connection(self.db_client)

    def _collection(self):
        if self.db_client.db is None:
            raise DataSourceUnavailable("Database unavailable", error="MongoDB is not connected")
        return self.db_client.db[self.collection_name]

    async def records(self, query: Optional[InsightQuery] = None) -> Sequence[Insight]:
        collection = self._collection()
        try:
            # _id order is insertion order for ObjectIds - the dataset order
            cursor = collection.find(build_mongo_filter(query)).sort("_id", 1)
            docs = [doc async for doc in cursor]
        except PyMongoError as exc:
            logger.warning("Mongo find on %s failed: %s", self.collection_name, exc)
            raise DataSourceUnavailable("Database query failed", error=str(exc))
        return parse_documents(docs)

    async def get(self, insight_id: str) -> Insight:
        collection = self._collection()
        try:
            doc = await collection.find_one(_id_filter(insight_id))
        except PyMongoError as exc:
            logger.warning("Mongo find_one on %s failed: %s", self.collection_name, exc)
            raise DataSourceUnavailable("Database query failed", error=str(exc))
        if doc is None:
            raise NotFound()
        return parse_documents([doc])[0]

    async def count(self) -> int:
        collection = self._collection()
        try:
            return await collection.count_documents({})
        except PyMongoError as exc:
            logger.warning("Mongo count on %s failed: %s", self.collection_name, exc)
            raise DataSourceUnavailable("Database query failed", error=str(exc))

    async def ping(self) -> bool:
        if self.db_client.client is None:
            return False
        try:
            await self.db_client.client.admin.command("ping")
        except Exception as exc:
            logger.warning("DB ping failed: %s", exc)
            return False
        return True
