# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Bearer-token authentication backed by the server-side session registry.

A signature that verifies is necessary but never sufficient: the presented
token must also match an active, unexpired session of an active user.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from paygate.domain.users.entities import Role, Session, User, role_of
from paygate.domain.users.repositories import UserRepository
from paygate.shared.config import JwtConfig
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.logging import logger

BEARER_PREFIX = "Bearer "


@dataclass(slots=True, frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime

    def as_session(self) -> Session:
        return Session(token=self.token, issued_at=self.issued_at, expires_at=self.expires_at)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def extract_bearer(header: str | None) -> str | None:
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


class AuthSessionManager:
    def __init__(
        self,
        config: JwtConfig,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._users = users
        self._clock = clock

    def issue_token(self, user_id: int) -> IssuedToken:
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self._config.expires_delta
        claims = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        token = jwt.encode(claims, self._config.secret, algorithm=self._config.algorithm)
        return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)

    def _decode(self, token: str) -> dict[str, Any] | Failure:
        try:
            return jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except ExpiredSignatureError:
            return Failure(ErrorKind.TOKEN_EXPIRED)
        except InvalidTokenError as exc:
            logger.debug(f"Token rejected: {type(exc).__name__}")
            return Failure(ErrorKind.TOKEN_INVALID)

    def authenticate(self, authorization_header: str | None) -> User | Failure:
        token = extract_bearer(authorization_header)
        if token is None:
            return Failure(ErrorKind.UNAUTHENTICATED)

        claims = self._decode(token)
        if isinstance(claims, Failure):
            return claims

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.isdigit():
            return Failure(ErrorKind.TOKEN_INVALID)

        user = self._users.find_active_by_id(int(subject))
        if user is None or not user.is_active:
            return Failure(ErrorKind.USER_NOT_FOUND)

        if not user.has_valid_session(token, self._clock()):
            logger.warning(f"Session not found or revoked for user={user.id}")
            return Failure(ErrorKind.SESSION_INVALID)

        return user

    def authorize(self, user: User, allowed_roles: Collection[Role]) -> Failure | None:
        if not allowed_roles or role_of(user) in allowed_roles:
            return None
        logger.warning(f"Forbidden: user={user.id} role={role_of(user).value}")
        return Failure(ErrorKind.FORBIDDEN)


__all__ = ["AuthSessionManager", "IssuedToken", "extract_bearer"]
