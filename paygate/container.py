"""Application dependency container."""

from __future__ import annotations

from functools import cached_property

import redis

from paygate.application.services.auth_session import AuthSessionManager
from paygate.application.services.password_hashing import WerkzeugPasswordHasher
from paygate.application.services.payment_gateway import ZarinpalGateway
from paygate.application.use_cases.payments.settle_callback import SettleCallbackUseCase
from paygate.application.use_cases.payments.start_payment import StartPaymentUseCase
from paygate.application.use_cases.users.login_user import LoginUserUseCase
from paygate.application.use_cases.users.logout_user import LogoutUserUseCase
from paygate.application.use_cases.users.revoke_sessions import RevokeUserSessionsUseCase
from paygate.infrastructure.audit import AuditLogger
from paygate.infrastructure.db.session import Database
from paygate.infrastructure.repositories.transactions import SqlAlchemyTransactionRepository
from paygate.infrastructure.repositories.users import (
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from paygate.interfaces.http.controllers.admin_controller import AdminController
from paygate.interfaces.http.controllers.auth_controller import AuthController
from paygate.interfaces.http.controllers.misc_controller import MiscController
from paygate.interfaces.http.controllers.payment_controller import PaymentController
from paygate.interfaces.http.flask_adapter import FlaskPipelineAdapter
from paygate.interfaces.http.gates import Gates
from paygate.shared.config import AppConfig
from paygate.shared.errors.http import ErrorTranslator
from paygate.shared.logging import logger
from paygate.shared.middleware.body_guard import BodyGuard
from paygate.shared.middleware.rate_limit import (
    BucketStore,
    InMemoryBucketStore,
    RateLimiter,
    RateLimitStage,
    RedisBucketStore,
    api_policy,
    login_policy,
)
from paygate.shared.middleware.request_logger import RequestLogger
from paygate.shared.middleware.sanitizer import SanitizeStage


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @cached_property
    def database(self) -> Database:
        return Database(self.config.database)

    @cached_property
    def audit(self) -> AuditLogger:
        return AuditLogger(self.database)

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher()

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.database)

    @cached_property
    def session_repository(self) -> SqlAlchemySessionRepository:
        return SqlAlchemySessionRepository(self.database)

    @cached_property
    def transaction_repository(self) -> SqlAlchemyTransactionRepository:
        return SqlAlchemyTransactionRepository(self.database)

    @cached_property
    def auth_sessions(self) -> AuthSessionManager:
        return AuthSessionManager(self.config.jwt, self.user_repository)

    @cached_property
    def gateway(self) -> ZarinpalGateway:
        return ZarinpalGateway(self.config.zarinpal, self.config.payments)

    @cached_property
    def bucket_store(self) -> BucketStore:
        redis_url = self.config.rate_limit.redis_url
        if redis_url:
            logger.info("Rate limit buckets stored in Redis")
            return RedisBucketStore(redis.Redis.from_url(redis_url))
        return InMemoryBucketStore()

    @cached_property
    def translator(self) -> ErrorTranslator:
        return ErrorTranslator(
            debug=self.config.debug_logging,
            expose_details=not self.config.is_production(),
        )

    @cached_property
    def gates(self) -> Gates:
        limits = self.config.rate_limit
        api_limit = login_limit = None
        if limits.enabled:
            api_limit = RateLimitStage(RateLimiter(api_policy(limits), self.bucket_store))
            login_limit = RateLimitStage(RateLimiter(login_policy(limits), self.bucket_store))
        return Gates(
            translator=self.translator,
            request_logger=RequestLogger(debug=self.config.debug_logging),
            authenticator=self.auth_sessions,
            body_guard=BodyGuard(self.config.security.max_body_bytes),
            sanitize=SanitizeStage(),
            api_limit=api_limit,
            login_limit=login_limit,
        )

    @cached_property
    def http_adapter(self) -> FlaskPipelineAdapter:
        return FlaskPipelineAdapter(
            max_body_bytes=self.config.security.max_body_bytes,
            trust_proxy=self.config.security.trust_proxy,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            users=self.user_repository,
            sessions=self.session_repository,
            password_hasher=self.password_hasher,
            auth=self.auth_sessions,
            audit=self.audit,
        )

    @cached_property
    def logout_user_use_case(self) -> LogoutUserUseCase:
        return LogoutUserUseCase(sessions=self.session_repository, audit=self.audit)

    @cached_property
    def revoke_sessions_use_case(self) -> RevokeUserSessionsUseCase:
        return RevokeUserSessionsUseCase(sessions=self.session_repository, audit=self.audit)

    @cached_property
    def start_payment_use_case(self) -> StartPaymentUseCase:
        return StartPaymentUseCase(
            gateway=self.gateway, transactions=self.transaction_repository, audit=self.audit
        )

    @cached_property
    def settle_callback_use_case(self) -> SettleCallbackUseCase:
        return SettleCallbackUseCase(
            gateway=self.gateway, transactions=self.transaction_repository, audit=self.audit
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            login_use_case=self.login_user_use_case,
            logout_use_case=self.logout_user_use_case,
        )

    @cached_property
    def payment_controller(self) -> PaymentController:
        return PaymentController(
            gateway=self.gateway,
            start_payment=self.start_payment_use_case,
            settle_callback=self.settle_callback_use_case,
        )

    @cached_property
    def admin_controller(self) -> AdminController:
        return AdminController(revoke_sessions=self.revoke_sessions_use_case)

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController(
            database=self.database, gateway=self.gateway, environment=self.config.app_env
        )
