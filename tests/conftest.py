"""
pytest configuration and shared fixtures for the Strategic Insights API tests.

Key concern: tests must not require a live MongoDB or a data file on disk.
We achieve this by:
  1. Never running the FastAPI lifespan (httpx's ASGITransport skips it),
     so no real data source is built.
  2. Overriding get_optional_context with an InsightsContext backed by an
     in-memory source holding SAMPLE_DOCS.
  3. Resetting the rate limiter before every test so request counts from
     one test never leak into the next.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATA_BACKEND", "json")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "1000/minute")


# Six records in ascending "added" order. Record 5 has every category unset.
SAMPLE_DOCS = [
    {
        "_id": "1", "end_year": "2020", "intensity": 6, "likelihood": 3, "relevance": 2,
        "topic": "oil", "sector": "Energy", "region": "Northern America", "pestle": "Industries",
        "source": "EIA", "country": "United States of America",
        "title": "U.S. crude oil production is projected to recover.",
        "insight": "Annual Energy Outlook", "added": "January, 20 2017 03:51:25",
    },
    {
        "_id": "2", "end_year": "", "intensity": 10, "likelihood": 2, "relevance": 4,
        "topic": "gas", "sector": "Energy", "region": "Western Asia", "pestle": "Industries",
        "source": "Reuters", "country": "Qatar",
        "title": "Qatar plans to raise LNG export capacity.",
        "insight": "LNG export capacity", "added": "January, 21 2017 11:09:36",
    },
    {
        "_id": "3", "end_year": "2018", "intensity": 16, "likelihood": 4, "relevance": 4,
        "topic": "oil", "sector": "Energy", "region": "Western Asia", "pestle": "Economic",
        "source": "Financial Times", "country": "Saudi Arabia",
        "title": "OPEC output cut could rebalance the market.",
        "insight": "OPEC production cut", "added": "January, 22 2017 08:12:01",
    },
    {
        "_id": "4", "end_year": "2030", "intensity": 4, "likelihood": 4, "relevance": 1,
        "topic": "climate", "sector": "Environment", "region": "Europe", "pestle": "Environmental",
        "source": "The Guardian", "country": "Germany",
        "title": "Germany risks missing its emissions target.",
        "insight": "Emission targets under pressure", "added": "January, 23 2017 10:44:12",
    },
    {
        "_id": "5", "end_year": "", "intensity": "", "likelihood": "", "relevance": "",
        "topic": "", "sector": "", "region": "", "pestle": "", "source": "", "country": "",
        "title": "Unclassified outlook note.",
        "insight": "Market outlook", "added": "January, 24 2017 12:00:00",
    },
    {
        "_id": "6", "end_year": "2022", "intensity": 8, "likelihood": 3, "relevance": 3,
        "topic": "robot", "sector": "Information Technology", "region": "World",
        "pestle": "Technological", "source": "CB Insights", "country": "",
        "title": "Industrial robot installations are forecast to double.",
        "insight": "Automation and the labour market", "added": "January, 26 2017 14:02:48",
    },
]


@pytest.fixture(autouse=True)
def reset_limiter():
    """Clear slowapi's in-memory counters so tests are independent."""
    from insights_api.core.rate_limit import limiter

    limiter.reset()
    yield


@pytest.fixture()
def records():
    from insights_api.services.data_source import parse_documents

    return parse_documents(SAMPLE_DOCS)


@pytest.fixture()
def context(records):
    from insights_api.core.config import Settings
    from insights_api.core.context import InsightsContext
    from insights_api.services.data_source import MemoryInsightSource

    return InsightsContext(settings=Settings(), source=MemoryInsightSource(records))


@pytest.fixture()
async def client(context):
    """
    HTTPX async test client wired to the FastAPI app with the sample context.

    Usage:
        async def test_something(client):
            response = await client.get("/api/insights")
            assert response.status_code == 200
    """
    from insights_api.core.context import get_optional_context
    from insights_api.main import app

    app.dependency_overrides[get_optional_context] = lambda: context
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
async def bare_client():
    """Client against the app before startup - no context has been built."""
    from insights_api.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
