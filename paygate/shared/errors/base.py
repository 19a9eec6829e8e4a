# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from http import HTTPStatus
from typing import Any


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    TOKEN_INVALID = "token_invalid"
    TOKEN_EXPIRED = "token_expired"
    USER_NOT_FOUND = "user_not_found"
    SESSION_INVALID = "session_invalid"
    INVALID_CREDENTIALS = "invalid_credentials"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    CALLBACK_VALIDATION_FAILED = "callback_validation_failed"
    VALIDATION_FAILED = "validation_error"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    SERVER_ERROR = "internal_error"

    @property
    def status(self) -> HTTPStatus:
        return _STATUS[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_STATUS: dict[ErrorKind, HTTPStatus] = {
    ErrorKind.UNAUTHENTICATED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.TOKEN_INVALID: HTTPStatus.UNAUTHORIZED,
    ErrorKind.TOKEN_EXPIRED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.USER_NOT_FOUND: HTTPStatus.UNAUTHORIZED,
    ErrorKind.SESSION_INVALID: HTTPStatus.UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIALS: HTTPStatus.UNAUTHORIZED,
    ErrorKind.FORBIDDEN: HTTPStatus.FORBIDDEN,
    ErrorKind.RATE_LIMITED: HTTPStatus.TOO_MANY_REQUESTS,
    ErrorKind.PAYLOAD_TOO_LARGE: HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: HTTPStatus.BAD_REQUEST,
    ErrorKind.CALLBACK_VALIDATION_FAILED: HTTPStatus.BAD_REQUEST,
    ErrorKind.VALIDATION_FAILED: HTTPStatus.UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.METHOD_NOT_ALLOWED: HTTPStatus.METHOD_NOT_ALLOWED,
    ErrorKind.SERVER_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHENTICATED: "Authentication required. Please sign in.",
    ErrorKind.TOKEN_INVALID: "Token is not valid.",
    ErrorKind.TOKEN_EXPIRED: "Token has expired.",
    ErrorKind.USER_NOT_FOUND: "User not found or account is inactive.",
    ErrorKind.SESSION_INVALID: "Session has expired or been revoked.",
    ErrorKind.INVALID_CREDENTIALS: "Phone number or password is incorrect.",
    ErrorKind.FORBIDDEN: "You do not have permission to perform this action.",
    ErrorKind.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorKind.PAYLOAD_TOO_LARGE: "Request body is too large.",
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: "Request body must be JSON.",
    ErrorKind.CALLBACK_VALIDATION_FAILED: "Payment callback is not valid.",
    ErrorKind.VALIDATION_FAILED: "Request data is not valid.",
    ErrorKind.NOT_FOUND: "Route not found.",
    ErrorKind.METHOD_NOT_ALLOWED: "Method not allowed.",
    ErrorKind.SERVER_ERROR: "Internal server error. Please try again later.",
}


@dataclass(slots=True, frozen=True)
class Failure:
    """An expected failure, returned as a value by a pipeline stage or handler."""

    kind: ErrorKind
    message: str | None = None
    errors: tuple[str, ...] = ()
    context: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None

    @property
    def status(self) -> HTTPStatus:
        return self.kind.status

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def detail(self) -> str:
        return self.message or self.kind.default_message

    def with_headers(self, headers: Mapping[str, str]) -> Failure:
        merged = dict(self.headers or {})
        merged.update(headers)
        return replace(self, headers=merged)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "message": self.detail,
            "error": self.code,
        }
        if self.errors:
            payload["errors"] = list(self.errors)
        if self.context:
            payload["context"] = dict(self.context)
        return payload


__all__ = ["ErrorKind", "Failure"]
