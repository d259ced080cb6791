from __future__ import annotations

import asyncio

from community_service.services.rate_limiter import (
    InMemoryRateLimiter,
    RateLimitConfig,
)

_SLOW = RateLimitConfig(capacity=3, refill_rate=0.001)


def test_burst_up_to_capacity_then_refused() -> None:
    limiter = InMemoryRateLimiter()
    results = [asyncio.run(limiter.check("user:1", _SLOW)) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after > 0
    assert all(r.limit == 3 for r in results)


def test_keys_have_separate_buckets() -> None:
    limiter = InMemoryRateLimiter()
    for _ in range(3):
        asyncio.run(limiter.check("user:1", _SLOW))
    assert asyncio.run(limiter.check("user:2", _SLOW)).allowed is True


def test_reset_refills_bucket() -> None:
    limiter = InMemoryRateLimiter()
    for _ in range(4):
        asyncio.run(limiter.check("user:1", _SLOW))
    asyncio.run(limiter.reset("user:1"))
    assert asyncio.run(limiter.check("user:1", _SLOW)).allowed is True


def test_per_second_config() -> None:
    config = RateLimitConfig.per_second(100.0)
    assert config.capacity == 100
    assert config.refill_rate == 100.0
    assert RateLimitConfig.per_second(0.5).capacity == 1
