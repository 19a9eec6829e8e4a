# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.middleware.context import RequestContext
from paygate.shared.middleware.pipeline import Continue, Halt, StageResult

JSON_MIMETYPE = "application/json"


class BodyGuard:
    name = "body_guard"

    def __init__(self, max_body_bytes: int) -> None:
        self._max_body_bytes = max_body_bytes

    def __call__(self, ctx: RequestContext) -> StageResult:
        if ctx.content_length is not None and ctx.content_length > self._max_body_bytes:
            return Halt(
                Failure(
                    ErrorKind.PAYLOAD_TOO_LARGE,
                    context={"limit_bytes": self._max_body_bytes},
                )
            )
        if ctx.has_body and (ctx.mimetype or "").lower() != JSON_MIMETYPE:
            return Halt(Failure(ErrorKind.UNSUPPORTED_MEDIA_TYPE))
        return Continue(ctx)


__all__ = ["BodyGuard", "JSON_MIMETYPE"]
