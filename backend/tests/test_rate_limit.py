"""
Tests for the in-memory rate limiter.

Tests: RateLimiter sliding window, per-key isolation, reset.
"""
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import time
import pytest
from middleware.rate_limit import RateLimiter


class TestRateLimiter:

    @pytest.mark.unit
    def test_allows_requests_under_limit(self):
        limiter = RateLimiter()
        for _ in range(5):
            assert limiter.check("wallet:A:/passes/mint", max_requests=5, window_seconds=60) is True

    @pytest.mark.unit
    def test_blocks_requests_over_limit(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.check("k", max_requests=3, window_seconds=60)
        assert limiter.check("k", max_requests=3, window_seconds=60) is False

    @pytest.mark.unit
    def test_different_keys_independent(self):
        limiter = RateLimiter()
        for _ in range(3):
            limiter.check("key1", max_requests=3, window_seconds=60)
        assert limiter.check("key1", max_requests=3, window_seconds=60) is False
        assert limiter.check("key2", max_requests=3, window_seconds=60) is True

    @pytest.mark.unit
    def test_old_entries_expire(self):
        limiter = RateLimiter()
        limiter._requests["k"] = [time.time() - 120, time.time() - 90]
        assert limiter.remaining("k", max_requests=2, window_seconds=60) == 2

    @pytest.mark.unit
    def test_remaining_never_negative(self):
        limiter = RateLimiter()
        for _ in range(5):
            limiter.check("k", max_requests=5, window_seconds=60)
        assert limiter.remaining("k", max_requests=5, window_seconds=60) == 0

    @pytest.mark.unit
    def test_reset_clears_all_keys(self):
        limiter = RateLimiter()
        limiter.check("k", max_requests=1, window_seconds=60)
        limiter.reset()
        assert limiter.check("k", max_requests=1, window_seconds=60) is True


@pytest.mark.api
async def test_mint_endpoint_is_rate_limited(client):
    from config import settings

    headers = {"X-Wallet-Address": "K2N7KBBVYX5XOZHOPM2PVRKL6DOJXLTYNKV53372QJG4YD3UH57LBHGNCE"}
    statuses = [
        (await client.post("/passes/mint", json={"amountMicro": 0}, headers=headers)).status_code
        for _ in range(settings.mint_rate_limit_per_minute + 1)
    ]

    # Minting is disabled, so every allowed attempt is a 409 until the limiter kicks in
    assert statuses[:-1] == [409] * settings.mint_rate_limit_per_minute
    assert statuses[-1] == 429
