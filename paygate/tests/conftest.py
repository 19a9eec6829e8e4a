from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from flask import Flask

from paygate.domain.payments.entities import Transaction
from paygate.domain.payments.repositories import TransactionRepository
from paygate.domain.users.entities import Session, User
from paygate.domain.users.repositories import PasswordHasher, SessionRepository, UserRepository
from paygate.interfaces.http.gates import Gates
from paygate.shared.config import (
    AppConfig,
    DatabaseConfig,
    JwtConfig,
    PaymentsConfig,
    RateLimitConfig,
    SecurityConfig,
    ServerConfig,
    ZarinpalConfig,
)
from paygate.shared.errors.http import ErrorTranslator, register_error_handler
from paygate.shared.middleware.body_guard import BodyGuard
from paygate.shared.middleware.request_logger import RequestLogger
from paygate.shared.middleware.sanitizer import SanitizeStage

JWT_SECRET = "test-jwt-secret-0123456789-abcdefghijklmnop"
WEBHOOK_SECRET = "test-webhook-secret-0123456789-abcdefghijk"
MERCHANT_ID = "3f2b8c1e-9a4d-4e6f-8b2a-1c3d5e7f9a0b"
AUTHORITY = "A00000000000000000000000000000012345"


def build_config(
    *,
    app_env: str = "test",
    rate_limit: dict[str, Any] | None = None,
    security: dict[str, Any] | None = None,
    database_url: str = "sqlite://",
) -> AppConfig:
    return AppConfig(
        app_env=app_env,
        log_level="DEBUG",
        log_file=None,
        jwt=JwtConfig(secret=JWT_SECRET, expires_in="7d"),
        zarinpal=ZarinpalConfig(
            merchant_id=MERCHANT_ID,
            sandbox=True,
            callback_url="https://shop.example.com/api/payments/callback",
            webhook_secret=WEBHOOK_SECRET,
        ),
        rate_limit=RateLimitConfig(**(rate_limit or {})),
        payments=PaymentsConfig(),
        security=SecurityConfig(**(security or {})),
        database=DatabaseConfig(url=database_url),
        server=ServerConfig(),
    )


@pytest.fixture()
def config() -> AppConfig:
    return build_config()


class InMemoryUserStore(UserRepository, SessionRepository):
    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._seq = 1

    def create(
        self,
        phone: str = "09120000000",
        *,
        password_hash: str = "",
        is_admin: bool = False,
        is_active: bool = True,
    ) -> User:
        user = User(
            id=self._seq,
            phone=phone,
            is_admin=is_admin,
            is_active=is_active,
            password_hash=password_hash,
        )
        self._seq += 1
        self._users[user.id] = user
        return user

    def get(self, user_id: int) -> User:
        return self._users[user_id]

    def find_active_by_id(self, user_id: int) -> User | None:
        user = self._users.get(user_id)
        return user if user is not None and user.is_active else None

    def find_active_by_phone(self, phone: str) -> User | None:
        for user in self._users.values():
            if user.phone == phone and user.is_active:
                return user
        return None

    def add(self, user_id: int, session: Session) -> Session:
        user = self._users[user_id]
        self._users[user_id] = replace(user, sessions=(*user.sessions, session))
        return session

    def deactivate(self, user_id: int, token: str) -> bool:
        user = self._users[user_id]
        changed = False
        sessions = []
        for session in user.sessions:
            if session.token == token and session.is_active:
                session = replace(session, is_active=False)
                changed = True
            sessions.append(session)
        self._users[user_id] = replace(user, sessions=tuple(sessions))
        return changed

    def deactivate_all(self, user_id: int) -> int:
        user = self._users[user_id]
        revoked = sum(1 for session in user.sessions if session.is_active)
        self._users[user_id] = replace(
            user, sessions=tuple(replace(s, is_active=False) for s in user.sessions)
        )
        return revoked


class DeterministicHasher(PasswordHasher):
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        return hashed == f"hashed:{password}"


@pytest.fixture()
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


class InMemoryTransactionRepository(TransactionRepository):
    def __init__(self) -> None:
        self.items: dict[str, Transaction] = {}

    def add(self, transaction: Transaction) -> Transaction:
        self.items[transaction.id] = transaction
        return transaction

    def find_by_authority(self, authority: str) -> Transaction | None:
        return next((t for t in self.items.values() if t.authority == authority), None)

    def save(self, transaction: Transaction) -> Transaction:
        self.items[transaction.id] = transaction
        return transaction


def past(days: int = 30) -> datetime:
    return datetime.now(UTC) - timedelta(days=days)


def make_gates(
    authenticator, *, max_body_bytes: int = 4096, api_limit=None, login_limit=None
) -> Gates:
    return Gates(
        translator=ErrorTranslator(),
        request_logger=RequestLogger(),
        authenticator=authenticator,
        body_guard=BodyGuard(max_body_bytes),
        sanitize=SanitizeStage(),
        api_limit=api_limit,
        login_limit=login_limit,
    )


@pytest.fixture()
def flask_app() -> Flask:
    app = Flask(__name__)
    register_error_handler(app, ErrorTranslator())
    return app
