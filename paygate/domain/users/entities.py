# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(slots=True, frozen=True)
class Session:

    token: str = field(repr=False)
    issued_at: datetime
    expires_at: datetime
    is_active: bool = True

    def is_valid_for(self, token: str, now: datetime) -> bool:
        if not self.is_active or self.expires_at <= now:
            return False
        return hmac.compare_digest(self.token.encode(), token.encode())


@dataclass(slots=True, frozen=True)
class User:

    id: int
    phone: str
    is_admin: bool = False
    is_active: bool = True
    sessions: tuple[Session, ...] = ()
    password_hash: str = field(default="", repr=False)

    def has_valid_session(self, token: str, now: datetime) -> bool:
        # Evaluate every session so the comparison count does not depend on position.
        matches = [session.is_valid_for(token, now) for session in self.sessions]
        return any(matches)


def role_of(user: User) -> Role:
    return Role.ADMIN if user.is_admin else Role.USER


__all__ = ["Role", "Session", "User", "role_of"]
