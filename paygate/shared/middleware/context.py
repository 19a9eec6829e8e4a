# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from paygate.domain.users.entities import User
    from paygate.shared.middleware.rate_limit import RateLimitDecision


@dataclass(slots=True, frozen=True)
class RequestContext:
    """Everything a stage may look at for one in-flight request."""

    method: str
    path: str
    client_ip: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    mimetype: str | None = None
    content_length: int | None = None
    user: User | None = None
    correlation_id: str = "-"
    started_at: float = 0.0
    rate_limits: tuple[RateLimitDecision, ...] = ()

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def user_id(self) -> int | None:
        return self.user.id if self.user is not None else None

    @property
    def has_body(self) -> bool:
        if self.body is None:
            return False
        if isinstance(self.body, (str, bytes, Mapping, list)):
            return len(self.body) > 0
        return True

    def evolve(self, **changes: Any) -> RequestContext:
        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class Outcome:
    status: int
    body: Mapping[str, Any]
    headers: Mapping[str, str] = field(default_factory=dict)

    def with_headers(self, headers: Mapping[str, str], *, override: bool = False) -> Outcome:
        merged = dict(self.headers)
        for key, value in headers.items():
            if override or key not in merged:
                merged[key] = value
        return replace(self, headers=merged)

    @property
    def ok(self) -> bool:
        return self.status < 400


def success(body: Mapping[str, Any] | None = None, *, status: int = 200, **fields: Any) -> Outcome:
    payload: dict[str, Any] = {"success": True}
    if body:
        payload.update(body)
    payload.update(fields)
    return Outcome(status=status, body=payload)


__all__ = ["Outcome", "RequestContext", "success"]
