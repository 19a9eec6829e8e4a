# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint

from paygate.application.use_cases.users.revoke_sessions import RevokeUserSessionsUseCase
from paygate.domain.users.entities import Role
from paygate.interfaces.http.dto.auth import SessionsRevokedDTO
from paygate.interfaces.http.flask_adapter import FlaskPipelineAdapter
from paygate.interfaces.http.gates import Gates
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.logging import logger
from paygate.shared.middleware.context import Outcome, RequestContext, success


class AdminController:
    def __init__(self, *, revoke_sessions: RevokeUserSessionsUseCase) -> None:
        self._revoke_sessions = revoke_sessions

    def revoke_sessions(self, ctx: RequestContext) -> Outcome | Failure:
        if ctx.user is None:
            return Failure(ErrorKind.UNAUTHENTICATED)
        target = int(ctx.params["user_id"])
        revoked = self._revoke_sessions.execute(
            target, admin_id=ctx.user.id, ip_address=ctx.client_ip
        )
        logger.info(f"admin.revoke_sessions: user={target} revoked={revoked} by={ctx.user.id}")
        return success(SessionsRevokedDTO(user_id=target, revoked=revoked).model_dump())

    def as_blueprint(self, gates: Gates, adapter: FlaskPipelineAdapter) -> Blueprint:
        bp = Blueprint("admin", __name__, url_prefix="/api/admin")
        bp.add_url_rule(
            "/users/<int:user_id>/sessions/revoke",
            "revoke_sessions",
            adapter.view(gates.authenticated(Role.ADMIN), self.revoke_sessions),
            methods=["POST"],
        )
        return bp
