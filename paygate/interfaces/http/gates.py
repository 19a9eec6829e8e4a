# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Sequence

from paygate.domain.users.entities import Role
from paygate.shared.errors.http import ErrorTranslator
from paygate.shared.middleware.auth import AuthenticateStage, AuthorizeStage, Authenticator
from paygate.shared.middleware.body_guard import BodyGuard
from paygate.shared.middleware.pipeline import Pipeline, Stage
from paygate.shared.middleware.rate_limit import RateLimitStage
from paygate.shared.middleware.request_logger import RequestLogger
from paygate.shared.middleware.sanitizer import SanitizeStage


class Gates:
    """Pre-assembled pipelines for the route groups of the API.

    Order: general limit, login limit, body guard, sanitizer, authenticate,
    authorize.
    """

    def __init__(
        self,
        *,
        translator: ErrorTranslator,
        request_logger: RequestLogger,
        authenticator: Authenticator,
        body_guard: BodyGuard,
        sanitize: SanitizeStage,
        api_limit: RateLimitStage | None = None,
        login_limit: RateLimitStage | None = None,
    ) -> None:
        self._translator = translator
        self._request_logger = request_logger
        self._authenticator = authenticator
        self._body_guard = body_guard
        self._sanitize = sanitize
        self._api_limit = api_limit
        self._login_limit = login_limit

    def _pipeline(self, stages: Sequence[Stage | None]) -> Pipeline:
        return Pipeline(
            [stage for stage in stages if stage is not None],
            translator=self._translator,
            request_logger=self._request_logger,
        )

    def public(self) -> Pipeline:
        return self._pipeline([self._api_limit, self._body_guard, self._sanitize])

    def login(self) -> Pipeline:
        return self._pipeline(
            [self._api_limit, self._login_limit, self._body_guard, self._sanitize]
        )

    def authenticated(self, *roles: Role) -> Pipeline:
        pipeline = self.public().extend(AuthenticateStage(self._authenticator))
        if roles:
            pipeline = pipeline.extend(AuthorizeStage(self._authenticator, roles))
        return pipeline


__all__ = ["Gates"]
