"""Use-case for revoking the session a request was made with."""

from __future__ import annotations

from paygate.domain.users.repositories import SessionRepository
from paygate.infrastructure.audit import AuditAction, AuditLogger


class LogoutUserUseCase:
    def __init__(self, *, sessions: SessionRepository, audit: AuditLogger) -> None:
        self._sessions = sessions
        self._audit = audit

    def execute(self, user_id: int, token: str, ip_address: str | None = None) -> bool:
        revoked = bool(token) and self._sessions.deactivate(user_id, token)
        self._audit.log(AuditAction.LOGOUT, user_id=user_id, ip_address=ip_address, success=revoked)
        return revoked
