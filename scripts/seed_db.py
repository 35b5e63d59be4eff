#!/usr/bin/env python3
"""
seed_db.py - Import the insight JSON dataset into MongoDB.

Usage (from the repository root):
    # Replace the collection with data/jsondata.json
    python scripts/seed_db.py

    # Import another export, keeping existing documents
    python scripts/seed_db.py --path /tmp/jsondata.json --append

What it does
────────────
  1. Reads the JSON array and validates every record through the same
     Insight model the API uses (years become strings, "" scores become null)
  2. Clears the collection (unless --append)
  3. Inserts the records; MongoDB assigns the ObjectIds
  4. Ensures the text index (title / insight / topic / sector) and one
     ascending index per filter field

Requires MONGO_URI / MONGO_DB_NAME / MONGO_COLLECTION in the environment or
in .env at the repository root (see .env.example).
"""

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

from pymongo import ASCENDING, TEXT

from insights_api.core.config import Settings
from insights_api.core.database import (
    DatabaseClient,
    _redact_uri,
    close_mongo_connection,
    connect_to_mongo,
)
from insights_api.core.errors import DataSourceUnavailable
from insights_api.models.insight import FILTER_FIELDS, SEARCH_FIELDS
from insights_api.services.data_source import load_insights_file


async def seed(path: Path, append: bool) -> int:
    settings = Settings()

    try:
        records = load_insights_file(path)
    except DataSourceUnavailable as exc:
        print(f"ERROR: {exc.message}: {exc.error}")
        return 1
    print(f"Read {len(records)} records from {path}")

    db_client = DatabaseClient()
    await connect_to_mongo(db_client, settings.mongo_uri, settings.mongo_db_name)
    if db_client.db is None:
        print(f"ERROR: Cannot connect to MongoDB at {_redact_uri(settings.mongo_uri)}")
        return 1
    collection = db_client.db[settings.mongo_collection]

    try:
        print(f"Connected to MongoDB ({settings.mongo_db_name}.{settings.mongo_collection})")

        # ─── Clear existing data ──────────────────────────────────────────────
        if not append:
            deleted = await collection.delete_many({})
            print(f"Removed {deleted.deleted_count} existing insights.")

        # ─── Insert ───────────────────────────────────────────────────────────
        if records:
            docs = [r.model_dump(exclude={"id"}) for r in records]
            result = await collection.insert_many(docs)
            print(f"Inserted {len(result.inserted_ids)} insights.")

        # ─── Ensure indexes exist ─────────────────────────────────────────────
        await collection.create_index([(name, TEXT) for name in SEARCH_FIELDS], name="insight_text")
        for name in FILTER_FIELDS:
            await collection.create_index([(name, ASCENDING)])
        print("Indexes ensured.")

        total = await collection.count_documents({})
        print(f"Total insights in collection: {total}")
    except Exception as exc:
        print(f"ERROR: MongoDB import failed: {exc}")
        return 1
    finally:
        await close_mongo_connection(db_client)

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Import insight records into MongoDB")
    parser.add_argument(
        "--path",
        type=Path,
        default=ROOT / "data" / "jsondata.json",
        help="JSON array of insight documents (default: data/jsondata.json)",
    )
    parser.add_argument(
        "--append",
        action="store_true",
        help="Keep existing documents instead of clearing the collection first",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(seed(args.path, args.append)))
