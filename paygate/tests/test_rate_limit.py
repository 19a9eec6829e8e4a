from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from paygate.shared.config import RateLimitConfig
from paygate.shared.errors.base import ErrorKind
from paygate.shared.errors.http import ErrorTranslator
from paygate.shared.middleware.context import Outcome, RequestContext, success
from paygate.shared.middleware.pipeline import Continue, Halt, Pipeline
from paygate.shared.middleware.rate_limit import (
    InMemoryBucketStore,
    RateLimiter,
    RateLimitPolicy,
    RateLimitStage,
    RedisBucketStore,
    api_policy,
    client_ip_key,
    login_policy,
)

WINDOW_MS = 15 * 60 * 1000


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def _ctx(ip: str = "10.0.0.1", path: str = "/api/health") -> RequestContext:
    return RequestContext(method="GET", path=path, client_ip=ip)


def _policy(max_requests: int = 3, **kwargs) -> RateLimitPolicy:
    return RateLimitPolicy(
        name=kwargs.pop("name", "api"),
        window_ms=WINDOW_MS,
        max_requests=max_requests,
        key_func=client_ip_key,
        **kwargs,
    )


def test_requests_up_to_the_cap_are_allowed_then_rejected() -> None:
    limiter = RateLimiter(_policy(3), InMemoryBucketStore(), clock=FakeClock())

    decisions = [limiter.consume("ip") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]


def test_window_resets_only_after_it_is_exceeded() -> None:
    clock = FakeClock()
    limiter = RateLimiter(_policy(1), InMemoryBucketStore(), clock=clock)

    assert limiter.consume("ip").allowed
    clock.advance_ms(WINDOW_MS)
    assert not limiter.consume("ip").allowed

    clock.advance_ms(1)
    assert limiter.consume("ip").allowed


def test_keys_are_counted_independently() -> None:
    limiter = RateLimiter(_policy(1), InMemoryBucketStore(), clock=FakeClock())

    assert limiter.consume("a").allowed
    assert limiter.consume("b").allowed
    assert not limiter.consume("a").allowed


def test_concurrent_hits_never_exceed_the_cap() -> None:
    store = InMemoryBucketStore()
    limiter = RateLimiter(_policy(50), store, clock=FakeClock())
    allowed: list[bool] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(20):
            decision = limiter.consume("burst")
            with lock:
                allowed.append(decision.allowed)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(allowed) == 200
    assert sum(allowed) == 50


def test_expired_buckets_are_evicted_when_table_is_full() -> None:
    clock = FakeClock()
    store = InMemoryBucketStore(max_keys=2)
    limiter = RateLimiter(_policy(5), store, clock=clock)
    limiter.consume("a")
    limiter.consume("b")
    clock.advance_ms(WINDOW_MS + 1)

    limiter.consume("c")

    assert set(store._buckets) == {"c"}


def test_rejection_carries_retry_after_and_skips_handler() -> None:
    stage = RateLimitStage(RateLimiter(_policy(1), InMemoryBucketStore(), clock=FakeClock()))
    handler = MagicMock(return_value=success())
    pipeline = Pipeline([stage], translator=ErrorTranslator())

    first = pipeline.run(_ctx(), handler)
    second = pipeline.run(_ctx(), handler)

    assert first.status == 200
    assert first.headers["RateLimit-Limit"] == "1"
    assert first.headers["RateLimit-Remaining"] == "0"
    assert second.status == 429
    assert second.body["error"] == ErrorKind.RATE_LIMITED.value
    assert second.headers["Retry-After"] == str(WINDOW_MS // 1000)
    assert handler.call_count == 1


def test_stage_records_decision_on_context() -> None:
    stage = RateLimitStage(RateLimiter(_policy(2), InMemoryBucketStore(), clock=FakeClock()))

    result = stage(_ctx())

    assert isinstance(result, Continue)
    assert result.context.rate_limits[0].policy == "api"
    assert isinstance(stage(_ctx()), Continue)
    assert isinstance(stage(_ctx()), Halt)


def test_login_policy_counts_only_failed_attempts() -> None:
    limits = RateLimitConfig(login_max_attempts=2)
    stage = RateLimitStage(RateLimiter(login_policy(limits), InMemoryBucketStore(), clock=FakeClock()))
    pipeline = Pipeline([stage], translator=ErrorTranslator())
    ok = MagicMock(return_value=success())
    rejected = MagicMock(return_value=Outcome(status=401, body={"success": False}))
    ctx = _ctx(path="/api/auth/login")

    for _ in range(5):
        assert pipeline.run(ctx, ok).status == 200
    assert pipeline.run(ctx, rejected).status == 401
    assert pipeline.run(ctx, rejected).status == 401
    blocked = pipeline.run(ctx, ok)

    assert blocked.status == 429
    assert ok.call_count == 5


def test_login_key_includes_route() -> None:
    policy = login_policy(RateLimitConfig())

    assert policy.key_func(_ctx(path="/api/auth/login")) == "10.0.0.1_/api/auth/login"
    assert policy.skip_successful


def test_api_policy_uses_configured_values() -> None:
    policy = api_policy(RateLimitConfig(window_ms=60_000, max_requests=10))

    assert policy.window_ms == 60_000
    assert policy.max_requests == 10
    assert not policy.skip_successful


def test_release_after_window_rollover_is_ignored() -> None:
    clock = FakeClock()
    store = InMemoryBucketStore()
    limiter = RateLimiter(_policy(1), store, clock=clock)
    stale = limiter.consume("ip")
    clock.advance_ms(WINDOW_MS + 1)
    fresh = limiter.consume("ip")

    limiter.release(stale)

    assert store._buckets["ip"].count == 1
    assert fresh.allowed


def test_redis_store_shares_counts_between_limiters() -> None:
    fakeredis = pytest.importorskip("fakeredis")
    client = fakeredis.FakeStrictRedis()
    clock = FakeClock()
    first = RateLimiter(_policy(2), RedisBucketStore(client), clock=clock)
    second = RateLimiter(_policy(2), RedisBucketStore(client), clock=clock)

    assert first.consume("ip").allowed
    assert second.consume("ip").allowed
    denied = first.consume("ip")

    assert not denied.allowed
    assert 0 < client.pttl("ratelimit:ip") <= WINDOW_MS


def test_redis_store_release_gives_back_a_hit() -> None:
    fakeredis = pytest.importorskip("fakeredis")
    client = fakeredis.FakeStrictRedis()
    limiter = RateLimiter(_policy(1), RedisBucketStore(client), clock=FakeClock())

    decision = limiter.consume("ip")
    limiter.release(decision)

    assert int(client.get("ratelimit:ip")) == 0
    assert limiter.consume("ip").allowed


def test_redis_release_after_window_expiry_is_ignored() -> None:
    fakeredis = pytest.importorskip("fakeredis")
    client = fakeredis.FakeStrictRedis()
    clock = FakeClock()
    limiter = RateLimiter(_policy(1), RedisBucketStore(client), clock=clock)
    stale = limiter.consume("ip")
    client.delete("ratelimit:ip", "ratelimit:ip:start")
    clock.advance_ms(WINDOW_MS + 1)
    fresh = limiter.consume("ip")

    limiter.release(stale)

    assert fresh.allowed
    assert fresh.window_start != stale.window_start
    assert int(client.get("ratelimit:ip")) == 1
    assert not limiter.consume("ip").allowed


def test_reset_clears_one_key_or_all() -> None:
    store = InMemoryBucketStore()
    limiter = RateLimiter(_policy(1), store, clock=FakeClock())
    limiter.consume("a")
    limiter.consume("b")

    store.reset("a")
    assert limiter.consume("a").allowed
    assert not limiter.consume("b").allowed

    store.reset()
    assert limiter.consume("b").allowed
