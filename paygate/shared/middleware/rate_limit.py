# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any, Protocol

from paygate.shared.config import RateLimitConfig
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.logging import logger
from paygate.shared.middleware.context import Outcome, RequestContext
from paygate.shared.middleware.pipeline import Continue, Halt, StageResult


@dataclass(slots=True)
class RateLimitBucket:
    key: str
    window_start: float
    count: int = 0


@dataclass(slots=True, frozen=True)
class RateLimitPolicy:
    name: str
    window_ms: int
    max_requests: int
    key_func: Callable[[RequestContext], str]
    skip_successful: bool = False
    message: str = "Too many requests. Please try again in 15 minutes."


@dataclass(slots=True, frozen=True)
class RateLimitDecision:
    policy: str
    key: str
    allowed: bool
    limit: int
    remaining: int
    window_start: float
    reset_at: float

    def headers(self, now_ms: float) -> dict[str, str]:
        reset_in = max(0, math.ceil((self.reset_at - now_ms) / 1000))
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(reset_in),
        }
        if not self.allowed:
            headers["Retry-After"] = str(reset_in)
        return headers


class BucketStore(Protocol):
    def hit(self, key: str, window_ms: int, now_ms: float) -> RateLimitBucket: ...

    def release(self, key: str, window_start: float) -> None: ...


class InMemoryBucketStore:
    """Per-process bucket table; increments are atomic under a single lock."""

    def __init__(self, max_keys: int = 100_000) -> None:
        self._buckets: dict[str, RateLimitBucket] = {}
        self._lock = Lock()
        self._max_keys = max(1, int(max_keys))

    def hit(self, key: str, window_ms: int, now_ms: float) -> RateLimitBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or (now_ms - bucket.window_start) > window_ms:
                if bucket is None and len(self._buckets) >= self._max_keys:
                    self._evict_expired(window_ms, now_ms)
                bucket = RateLimitBucket(key=key, window_start=now_ms)
                self._buckets[key] = bucket
            bucket.count += 1
            return RateLimitBucket(key=key, window_start=bucket.window_start, count=bucket.count)

    def release(self, key: str, window_start: float) -> None:
        with self._lock:
            bucket = self._buckets.get(key)
            # A new window has started since the hit; nothing left to give back.
            if bucket is None or bucket.window_start != window_start:
                return
            if bucket.count > 0:
                bucket.count -= 1

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._buckets.clear()
            else:
                self._buckets.pop(key, None)

    def _evict_expired(self, window_ms: int, now_ms: float) -> None:
        expired = [
            key
            for key, bucket in self._buckets.items()
            if (now_ms - bucket.window_start) > window_ms
        ]
        for key in expired:
            del self._buckets[key]


class RedisBucketStore:
    """Fixed-window counters shared by every process pointing at one Redis."""

    def __init__(self, client: Any, *, prefix: str = "ratelimit:") -> None:
        self._client = client
        self._prefix = prefix

    def _names(self, key: str) -> tuple[str, str]:
        name = f"{self._prefix}{key}"
        return name, f"{name}:start"

    def hit(self, key: str, window_ms: int, now_ms: float) -> RateLimitBucket:
        name, start_name = self._names(key)
        pipe = self._client.pipeline(transaction=True)
        # Counter and window start are created together and expire together.
        pipe.set(start_name, repr(float(now_ms)), px=window_ms, nx=True)
        pipe.set(name, 0, px=window_ms, nx=True)
        pipe.incr(name)
        pipe.get(start_name)
        _, _, count, start = pipe.execute()
        window_start = float(start) if start is not None else float(now_ms)
        return RateLimitBucket(key=key, window_start=window_start, count=int(count))

    def release(self, key: str, window_start: float) -> None:
        name, start_name = self._names(key)

        def _decrement(pipe: Any) -> None:
            start = pipe.get(start_name)
            # The window that took the hit has expired or been replaced.
            if start is None or float(start) != window_start:
                return
            current = pipe.get(name)
            if current is None or int(current) <= 0:
                return
            pipe.multi()
            pipe.decr(name)

        self._client.transaction(_decrement, name, start_name)


class RateLimiter:
    def __init__(
        self,
        policy: RateLimitPolicy,
        store: BucketStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policy = policy
        self._store = store
        self._clock = clock

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    def now_ms(self) -> float:
        return self._clock() * 1000.0

    def consume(self, key: str) -> RateLimitDecision:
        bucket = self._store.hit(key, self._policy.window_ms, self.now_ms())
        limit = self._policy.max_requests
        return RateLimitDecision(
            policy=self._policy.name,
            key=key,
            allowed=bucket.count <= limit,
            limit=limit,
            remaining=max(0, limit - bucket.count),
            window_start=bucket.window_start,
            reset_at=bucket.window_start + self._policy.window_ms,
        )

    def release(self, decision: RateLimitDecision) -> None:
        self._store.release(decision.key, decision.window_start)


class RateLimitStage:
    """Counts the request before the handler runs and rejects it over the cap."""

    def __init__(self, limiter: RateLimiter) -> None:
        self._limiter = limiter
        self.name = f"rate_limit:{limiter.policy.name}"

    def __call__(self, ctx: RequestContext) -> StageResult:
        policy = self._limiter.policy
        decision = self._limiter.consume(policy.key_func(ctx))
        if not decision.allowed:
            logger.warning(
                f"rate_limit: {policy.name} exceeded key={decision.key} "
                f"limit={decision.limit} window_ms={policy.window_ms}"
            )
            failure = Failure(
                ErrorKind.RATE_LIMITED,
                message=policy.message,
                headers=decision.headers(self._limiter.now_ms()),
            )
            return Halt(failure)
        return Continue(ctx.evolve(rate_limits=(*ctx.rate_limits, decision)))

    def complete(self, ctx: RequestContext, outcome: Outcome) -> Outcome:
        decision = next(
            (d for d in ctx.rate_limits if d.policy == self._limiter.policy.name), None
        )
        if decision is None:
            return outcome
        if self._limiter.policy.skip_successful and outcome.ok:
            self._limiter.release(decision)
            decision = _with_remaining(decision, min(decision.limit, decision.remaining + 1))
        return outcome.with_headers(decision.headers(self._limiter.now_ms()))


def _with_remaining(decision: RateLimitDecision, remaining: int) -> RateLimitDecision:
    return RateLimitDecision(
        policy=decision.policy,
        key=decision.key,
        allowed=decision.allowed,
        limit=decision.limit,
        remaining=remaining,
        window_start=decision.window_start,
        reset_at=decision.reset_at,
    )


def client_ip_key(ctx: RequestContext) -> str:
    return ctx.client_ip


def client_ip_route_key(ctx: RequestContext) -> str:
    return f"{ctx.client_ip}_{ctx.path}"


def api_policy(config: RateLimitConfig) -> RateLimitPolicy:
    return RateLimitPolicy(
        name="api",
        window_ms=config.window_ms,
        max_requests=config.max_requests,
        key_func=client_ip_key,
    )


def login_policy(config: RateLimitConfig) -> RateLimitPolicy:
    return RateLimitPolicy(
        name="login",
        window_ms=config.login_window_ms,
        max_requests=config.login_max_attempts,
        key_func=client_ip_route_key,
        skip_successful=True,
        message="Too many login attempts. Please try again in 15 minutes.",
    )


__all__ = [
    "BucketStore",
    "InMemoryBucketStore",
    "RateLimitBucket",
    "RateLimitDecision",
    "RateLimitPolicy",
    "RateLimitStage",
    "RateLimiter",
    "RedisBucketStore",
    "api_policy",
    "client_ip_key",
    "client_ip_route_key",
    "login_policy",
]
