# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint
from pydantic import ValidationError

from paygate.application.services.auth_session import extract_bearer
from paygate.application.use_cases.users.login_user import LoginUserUseCase
from paygate.application.use_cases.users.logout_user import LogoutUserUseCase
from paygate.domain.users.entities import User, role_of
from paygate.interfaces.http.dto.auth import LoginRequestDTO, LoginSuccessDTO, UserDTO
from paygate.interfaces.http.flask_adapter import FlaskPipelineAdapter
from paygate.interfaces.http.gates import Gates
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.errors.validation import validation_failure
from paygate.shared.logging import logger
from paygate.shared.middleware.context import Outcome, RequestContext, success


def user_dto(user: User) -> UserDTO:
    return UserDTO(id=user.id, phone=user.phone, role=role_of(user).value, is_admin=user.is_admin)


class AuthController:
    def __init__(
        self,
        *,
        login_use_case: LoginUserUseCase,
        logout_use_case: LogoutUserUseCase,
    ) -> None:
        self._login_use_case = login_use_case
        self._logout_use_case = logout_use_case

    def login(self, ctx: RequestContext) -> Outcome | Failure:
        try:
            dto = LoginRequestDTO.model_validate(ctx.body or {})
        except ValidationError as exc:
            return validation_failure(exc)

        result = self._login_use_case.execute(dto.phone, dto.password, ctx.client_ip)
        if isinstance(result, Failure):
            return result

        payload = LoginSuccessDTO(
            token=result.token.token,
            expires_at=result.token.expires_at.isoformat(),
            user=user_dto(result.user),
        )
        logger.info(f"auth.login: ok user_id={result.user.id}")
        return success(payload.model_dump())

    def logout(self, ctx: RequestContext) -> Outcome | Failure:
        if ctx.user is None:
            return Failure(ErrorKind.UNAUTHENTICATED)
        token = extract_bearer(ctx.header("Authorization")) or ""
        self._logout_use_case.execute(ctx.user.id, token, ctx.client_ip)
        logger.info(f"auth.logout: ok user_id={ctx.user.id}")
        return success(message="Signed out.")

    def me(self, ctx: RequestContext) -> Outcome | Failure:
        if ctx.user is None:
            return Failure(ErrorKind.UNAUTHENTICATED)
        return success(user=user_dto(ctx.user).model_dump())

    def as_blueprint(self, gates: Gates, adapter: FlaskPipelineAdapter) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        bp.add_url_rule(
            "/login", "login", adapter.view(gates.login(), self.login), methods=["POST"]
        )
        bp.add_url_rule(
            "/logout", "logout", adapter.view(gates.authenticated(), self.logout), methods=["POST"]
        )
        bp.add_url_rule("/me", "me", adapter.view(gates.authenticated(), self.me), methods=["GET"])
        return bp
