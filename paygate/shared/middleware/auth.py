# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Collection
from typing import TYPE_CHECKING, Protocol

from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.middleware.context import RequestContext
from paygate.shared.middleware.pipeline import Continue, Halt, StageResult

if TYPE_CHECKING:
    from paygate.domain.users.entities import Role, User


class Authenticator(Protocol):
    def authenticate(self, authorization_header: str | None) -> User | Failure: ...

    def authorize(self, user: User, allowed_roles: Collection[Role]) -> Failure | None: ...


class AuthenticateStage:
    name = "authenticate"

    def __init__(self, authenticator: Authenticator) -> None:
        self._authenticator = authenticator

    def __call__(self, ctx: RequestContext) -> StageResult:
        result = self._authenticator.authenticate(ctx.header("Authorization"))
        if isinstance(result, Failure):
            return Halt(result)
        return Continue(ctx.evolve(user=result))


class AuthorizeStage:
    name = "authorize"

    def __init__(self, authenticator: Authenticator, roles: Collection[Role]) -> None:
        self._authenticator = authenticator
        self._roles = frozenset(roles)

    def __call__(self, ctx: RequestContext) -> StageResult:
        if ctx.user is None:
            return Halt(Failure(ErrorKind.UNAUTHENTICATED))
        failure = self._authenticator.authorize(ctx.user, self._roles)
        if failure is not None:
            return Halt(failure)
        return Continue(ctx)


__all__ = ["AuthenticateStage", "AuthorizeStage", "Authenticator"]
