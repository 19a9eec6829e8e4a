# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import traceback
from http import HTTPStatus

from flask import Flask, Request, jsonify, request
from werkzeug.exceptions import (
    HTTPException,
    MethodNotAllowed,
    NotFound,
    RequestEntityTooLarge,
)

from paygate.shared.logging import logger
from paygate.shared.middleware.context import Outcome, RequestContext

from .base import ErrorKind, Failure


class ErrorTranslator:
    """Renders failures into the uniform ``{success: false, message}`` shape."""

    def __init__(self, *, debug: bool = False, expose_details: bool = False) -> None:
        self._debug = debug
        self._expose_details = expose_details

    def render(
        self, failure: Failure, ctx: RequestContext, *, stage: str | None = None
    ) -> Outcome:
        user = ctx.user_id if ctx.user_id is not None else "guest"
        where = f" at {stage}" if stage else ""
        message = (
            f"Request rejected{where}: {failure.code} on {ctx.method} {ctx.path} "
            f"from {ctx.client_ip}, user={user}"
        )
        if failure.errors:
            message += f", errors={list(failure.errors)}"
        if failure.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error(message)
        else:
            logger.warning(message)

        headers = dict(failure.headers or {})
        if failure.status == HTTPStatus.UNAUTHORIZED:
            headers.setdefault("WWW-Authenticate", "Bearer")
        return Outcome(status=int(failure.status), body=failure.to_dict(), headers=headers)

    def render_exception(self, exc: BaseException, ctx: RequestContext) -> Outcome:
        user = ctx.user_id if ctx.user_id is not None else "guest"
        logger.opt(exception=exc).error(
            f"Unhandled exception: {type(exc).__name__} on {ctx.method} {ctx.path} "
            f"from {ctx.client_ip}, user={user}"
            + (f", query={dict(ctx.query)}" if self._debug else "")
        )

        body = Failure(ErrorKind.SERVER_ERROR).to_dict()
        if self._expose_details:
            body["message"] = str(exc) or type(exc).__name__
            body["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return Outcome(status=int(HTTPStatus.INTERNAL_SERVER_ERROR), body=body)


def client_ip_of(req: Request, *, trust_proxy: bool) -> str:
    if trust_proxy:
        forwarded = req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return req.remote_addr or "unknown"


def _request_context(trust_proxy: bool) -> RequestContext:
    return RequestContext(
        method=request.method,
        path=request.path,
        client_ip=client_ip_of(request, trust_proxy=trust_proxy),
    )


def respond(outcome: Outcome):
    response = jsonify(outcome.body)
    response.status_code = outcome.status
    for key, value in outcome.headers.items():
        response.headers[key] = value
    return response


def register_error_handler(
    app: Flask, translator: ErrorTranslator, *, trust_proxy: bool = False
) -> None:
    @app.errorhandler(NotFound)
    def _handle_not_found(exc: NotFound):
        return respond(translator.render(Failure(ErrorKind.NOT_FOUND), _request_context(trust_proxy)))

    @app.errorhandler(MethodNotAllowed)
    def _handle_method_not_allowed(exc: MethodNotAllowed):
        failure = Failure(
            ErrorKind.METHOD_NOT_ALLOWED,
            headers={"Allow": ", ".join(exc.valid_methods or [])},
        )
        return respond(translator.render(failure, _request_context(trust_proxy)))

    @app.errorhandler(RequestEntityTooLarge)
    def _handle_too_large(exc: RequestEntityTooLarge):
        failure = Failure(ErrorKind.PAYLOAD_TOO_LARGE)
        return respond(translator.render(failure, _request_context(trust_proxy)))

    @app.errorhandler(HTTPException)
    def _handle_http(exc: HTTPException):
        return exc

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        return respond(translator.render_exception(exc, _request_context(trust_proxy)))


__all__ = ["ErrorTranslator", "client_ip_of", "register_error_handler", "respond"]
