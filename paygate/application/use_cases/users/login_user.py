# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass

from paygate.application.services.auth_session import AuthSessionManager, IssuedToken
from paygate.domain.users.entities import User
from paygate.domain.users.repositories import PasswordHasher, SessionRepository, UserRepository
from paygate.infrastructure.audit import AuditAction, AuditLogger
from paygate.shared.errors.base import ErrorKind, Failure


@dataclass(slots=True, frozen=True)
class LoginResult:
    user: User
    token: IssuedToken


class LoginUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        sessions: SessionRepository,
        password_hasher: PasswordHasher,
        auth: AuthSessionManager,
        audit: AuditLogger,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._password_hasher = password_hasher
        self._auth = auth
        self._audit = audit

    def execute(self, phone: str, password: str, ip_address: str | None = None) -> LoginResult | Failure:
        user = self._users.find_active_by_phone(phone)
        password_valid = user is not None and self._password_hasher.verify(password, user.password_hash)

        if not password_valid:
            self._audit.log(
                AuditAction.LOGIN_FAILED,
                user_id=user.id if user else None,
                ip_address=ip_address,
                details={"phone": phone},
                success=False,
            )
            return Failure(ErrorKind.INVALID_CREDENTIALS)

        issued = self._auth.issue_token(user.id)
        self._sessions.add(user.id, issued.as_session())
        self._audit.log(AuditAction.LOGIN_SUCCESS, user_id=user.id, ip_address=ip_address)
        return LoginResult(user=user, token=issued)
