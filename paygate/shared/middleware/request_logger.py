# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hashlib
import secrets
import time
from collections.abc import Mapping
from typing import Any

from paygate.shared.logging import clear_correlation_id, logger, set_correlation_id
from paygate.shared.middleware.context import Outcome, RequestContext

_MAX_REQUEST_ID_LENGTH = 64


def _sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    sensitive_headers = {
        "authorization", "cookie", "x-api-key", "x-auth-token", "x-session-id"
    }

    sanitized = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if key_lower in sensitive_headers:
            sanitized[key] = f"<hashed:{hashlib.sha256(value.encode()).hexdigest()[:8]}>"
        else:
            sanitized[key] = value

    return sanitized


def _sanitize_query_params(params: Mapping[str, Any]) -> dict[str, Any]:
    sensitive_params = {"password", "token", "key", "secret", "auth", "authority"}

    sanitized = {}
    for key, value in params.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in sensitive_params):
            sanitized[key] = "<redacted>"
        else:
            sanitized[key] = value

    return sanitized


def _user_label(ctx: RequestContext) -> str:
    return str(ctx.user_id) if ctx.user_id is not None else "guest"


class RequestLogger:
    def __init__(self, *, debug: bool = False) -> None:
        self._debug = debug

    def start(self, ctx: RequestContext) -> RequestContext:
        incoming = (ctx.header("X-Request-ID") or "").strip()
        correlation_id = incoming[:_MAX_REQUEST_ID_LENGTH] or secrets.token_urlsafe(8)
        set_correlation_id(correlation_id)
        ctx = ctx.evolve(correlation_id=correlation_id, started_at=time.perf_counter())

        user_agent = ctx.header("User-Agent") or "-"
        if self._debug:
            logger.info(
                f"Request started: {ctx.method} {ctx.path} "
                f"from {ctx.client_ip}, user={_user_label(ctx)}, ua={user_agent}, "
                f"query={_sanitize_query_params(ctx.query)}, "
                f"headers={_sanitize_headers(ctx.headers)}"
            )
        else:
            logger.info(f"Request: {ctx.method} {ctx.path} from {ctx.client_ip}, ua={user_agent}")
        return ctx

    def finish(self, ctx: RequestContext, outcome: Outcome) -> Outcome:
        duration_ms = (time.perf_counter() - ctx.started_at) * 1000 if ctx.started_at else 0.0
        logger.info(
            f"Response: {ctx.method} {ctx.path} status={outcome.status}, "
            f"duration={duration_ms:.1f}ms, user={_user_label(ctx)}"
        )
        clear_correlation_id()
        return outcome.with_headers({"X-Request-ID": ctx.correlation_id})


__all__ = ["RequestLogger"]
