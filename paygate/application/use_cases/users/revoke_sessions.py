# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from paygate.domain.users.repositories import SessionRepository
from paygate.infrastructure.audit import AuditAction, AuditLogger


class RevokeUserSessionsUseCase:
    def __init__(self, *, sessions: SessionRepository, audit: AuditLogger) -> None:
        self._sessions = sessions
        self._audit = audit

    def execute(self, target_user_id: int, *, admin_id: int, ip_address: str | None = None) -> int:
        revoked = self._sessions.deactivate_all(target_user_id)
        self._audit.log(
            AuditAction.SESSIONS_REVOKED,
            user_id=admin_id,
            ip_address=ip_address,
            details={"target_user_id": target_user_id, "revoked": revoked},
        )
        return revoked
