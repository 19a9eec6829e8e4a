# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from paygate.shared.middleware.context import RequestContext
from paygate.shared.middleware.pipeline import Continue, StageResult

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)


class RequestSanitizer:
    """Strips markup and script vectors from every string in a request payload.

    Containers are rebuilt rather than edited in place, so the caller's data
    is never mutated. Non-string scalars pass through untouched.
    """

    def _strip_once(self, value: str) -> str:
        value = _SCRIPT_BLOCK.sub("", value)
        value = _TAG.sub("", value)
        value = _JAVASCRIPT_SCHEME.sub("", value)
        return _EVENT_HANDLER.sub("", value)

    def clean_text(self, value: str) -> str:
        # A removal can splice a new match together, so repeat until stable.
        while True:
            cleaned = self._strip_once(value)
            if cleaned == value:
                return cleaned
            value = cleaned

    def clean(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.clean_text(value)
        if isinstance(value, Mapping):
            return {key: self.clean(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.clean(item) for item in value)
        return value


class SanitizeStage:
    name = "sanitize"

    def __init__(self, sanitizer: RequestSanitizer | None = None) -> None:
        self._sanitizer = sanitizer or RequestSanitizer()

    def __call__(self, ctx: RequestContext) -> StageResult:
        clean = self._sanitizer.clean
        return Continue(
            ctx.evolve(
                body=clean(ctx.body),
                query=clean(ctx.query),
                params=clean(ctx.params),
            )
        )


__all__ = ["RequestSanitizer", "SanitizeStage"]
