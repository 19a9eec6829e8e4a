# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import json
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Request, request

from paygate.shared.errors.http import client_ip_of, respond
from paygate.shared.middleware.body_guard import JSON_MIMETYPE
from paygate.shared.middleware.context import RequestContext
from paygate.shared.middleware.pipeline import Handler, Pipeline


class FlaskPipelineAdapter:
    """Bridges a Flask request into the pipeline and the outcome back out."""

    def __init__(self, *, max_body_bytes: int, trust_proxy: bool = False) -> None:
        self._max_body_bytes = max_body_bytes
        self._trust_proxy = trust_proxy

    def _read_limited(self, req: Request) -> bytes:
        # Undeclared (chunked) bodies are read only one byte past the limit.
        limit = self._max_body_bytes + 1
        chunks: list[bytes] = []
        size = 0
        while size < limit:
            chunk = req.stream.read(limit - size)
            if not chunk:
                break
            chunks.append(chunk)
            size += len(chunk)
        return b"".join(chunks)

    def _read_body(self, req: Request) -> tuple[Any, int | None]:
        declared = req.content_length
        if declared is not None and declared > self._max_body_bytes:
            # Left unread; the body guard rejects it on the declared length.
            return None, declared
        raw = self._read_limited(req)
        if len(raw) > self._max_body_bytes:
            return None, len(raw)
        size = declared if declared is not None else len(raw)
        if not raw:
            return None, size
        if req.mimetype == JSON_MIMETYPE:
            try:
                return json.loads(raw), size
            except ValueError:
                pass
        return raw.decode("utf-8", errors="replace"), size

    def build_context(self, req: Request) -> RequestContext:
        body, size = self._read_body(req)
        return RequestContext(
            method=req.method,
            path=req.path,
            client_ip=client_ip_of(req, trust_proxy=self._trust_proxy),
            headers=dict(req.headers.items()),
            query=req.args.to_dict(),
            params=dict(req.view_args or {}),
            body=body,
            mimetype=req.mimetype or None,
            content_length=size,
        )

    def view(self, pipeline: Pipeline, handler: Handler) -> Callable[..., Any]:
        @wraps(handler)
        def _view(**_kwargs: Any):
            outcome = pipeline.run(self.build_context(request), handler)
            return respond(outcome)

        return _view


__all__ = ["FlaskPipelineAdapter"]
