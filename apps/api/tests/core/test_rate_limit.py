"""
Tests for the in-memory rate limit fallback.
"""

from types import SimpleNamespace

import pytest

from campus.core import rate_limit
from campus.core.rate_limit import RateLimitExceeded, check_rate_limit, enforce_rate_limit


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    monkeypatch.setattr("campus.core.redis.redis_client", None)


class TestMemoryRateLimit:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self):
        results = [await check_rate_limit("login:1.2.3.4", 3, 60) for _ in range(4)]
        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        for _ in range(2):
            await check_rate_limit("login:a", 2, 60)
        assert await check_rate_limit("login:b", 2, 60)

    @pytest.mark.asyncio
    async def test_enforce_raises_429(self):
        await enforce_rate_limit("otp:x", 1, 900)
        with pytest.raises(RateLimitExceeded) as exc_info:
            await enforce_rate_limit("otp:x", 1, 900)
        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "900"

    @pytest.mark.asyncio
    async def test_reset_clears_state(self):
        await check_rate_limit("k", 1, 60)
        rate_limit.reset_memory_store()
        assert await check_rate_limit("k", 1, 60)

    @pytest.mark.asyncio
    async def test_idle_buckets_are_evicted(self, monkeypatch):
        clock = SimpleNamespace(now=1000.0)
        monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: clock.now))

        await check_rate_limit("otp:old", 1, 60)
        clock.now += 61
        await check_rate_limit("otp:new", 1, 60)

        assert "otp:old" not in rate_limit._memory_store
        assert list(rate_limit._memory_store) == ["otp:new"]

    @pytest.mark.asyncio
    async def test_live_bucket_survives_sweep(self, monkeypatch):
        clock = SimpleNamespace(now=1000.0)
        monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: clock.now))

        await check_rate_limit("login:slow", 1, 900)
        clock.now += 61
        await check_rate_limit("login:other", 1, 60)

        assert not await check_rate_limit("login:slow", 1, 900)
