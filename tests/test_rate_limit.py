"""
test_rate_limit.py - Tests for rate limiting on the insight routes.

Verifies that:
  1. Rate-limited routes stay accessible under the limit (200 OK).
  2. Exceeding the limit returns HTTP 429 in the standard error envelope.

Strategy for 429 tests:
  Patch `limiter.limiter.hit` to return False, which tells slowapi that the
  moving-window bucket is full → raises RateLimitExceeded → 429.
  This avoids sending hundreds of real requests in tests.
"""

from unittest.mock import patch

import pytest

LIMITED_PATHS = ["/api/insights", "/api/insights/filters", "/api/insights/stats", "/api/stats"]


# ══ Under the limit ════════════════════════════════════════════════════════════

class TestWithinLimit:

    async def test_multiple_requests_within_limit_succeed(self, client):
        for _ in range(3):
            r = await client.get("/api/insights")
            assert r.status_code == 200


# ══ Rate limit exceeded (429) ══════════════════════════════════════════════════

class TestRateLimitExceeded:

    @pytest.mark.parametrize("path", LIMITED_PATHS)
    async def test_429_when_limit_exceeded(self, client, path):
        from insights_api.core.rate_limit import limiter

        with patch.object(limiter.limiter, "hit", return_value=False):
            r = await client.get(path)

        assert r.status_code == 429

    async def test_429_uses_error_envelope(self, client):
        from insights_api.core.rate_limit import limiter

        with patch.object(limiter.limiter, "hit", return_value=False):
            r = await client.get("/api/insights")

        assert r.headers.get("content-type", "").startswith("application/json")
        data = r.json()
        assert data["success"] is False
        assert "rate limit" in data["message"].lower()

    async def test_single_insight_lookup_not_limited(self, client):
        from insights_api.core.rate_limit import limiter

        with patch.object(limiter.limiter, "hit", return_value=False):
            r = await client.get("/api/insights/1")

        assert r.status_code == 200

    async def test_after_limit_reset_request_succeeds(self, client):
        """Once the limiter is no longer patched, requests return 200 again."""
        from insights_api.core.rate_limit import limiter

        with patch.object(limiter.limiter, "hit", return_value=False):
            r_limited = await client.get("/api/insights")
        assert r_limited.status_code == 429

        r_ok = await client.get("/api/insights")
        assert r_ok.status_code == 200


# ══ Limiter configuration ══════════════════════════════════════════════════════

class TestLimiterSetup:

    async def test_limiter_attached_to_app_state(self):
        from insights_api.core.rate_limit import limiter
        from insights_api.main import app

        assert app.state.limiter is limiter

    async def test_limiter_uses_ip_key_function(self):
        from slowapi.util import get_remote_address

        from insights_api.core.rate_limit import limiter

        assert limiter._key_func is get_remote_address
