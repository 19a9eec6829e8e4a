from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from conftest import (
    AUTHORITY,
    JWT_SECRET,
    MERCHANT_ID,
    WEBHOOK_SECRET,
    DeterministicHasher,
    InMemoryTransactionRepository,
    InMemoryUserStore,
)
from paygate.application.services.auth_session import AuthSessionManager
from paygate.application.services.payment_gateway import ZarinpalGateway
from paygate.application.use_cases.payments.settle_callback import (
    ERROR_ALREADY_SETTLED,
    ERROR_AMOUNT_MISMATCH,
    ERROR_UNKNOWN_TRANSACTION,
    SettleCallbackUseCase,
)
from paygate.application.use_cases.payments.start_payment import (
    StartedPayment,
    StartPaymentUseCase,
)
from paygate.application.use_cases.users.login_user import LoginResult, LoginUserUseCase
from paygate.application.use_cases.users.logout_user import LogoutUserUseCase
from paygate.application.use_cases.users.revoke_sessions import RevokeUserSessionsUseCase
from paygate.domain.payments.entities import Transaction, TransactionStatus
from paygate.domain.users.entities import User
from paygate.infrastructure.audit import AuditAction
from paygate.shared.config import JwtConfig, PaymentsConfig, ZarinpalConfig
from paygate.shared.errors.base import ErrorKind, Failure

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def audit() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def auth(user_store: InMemoryUserStore) -> AuthSessionManager:
    return AuthSessionManager(JwtConfig(secret=JWT_SECRET), user_store)


@pytest.fixture()
def login(user_store, auth, audit) -> LoginUserUseCase:
    return LoginUserUseCase(
        users=user_store,
        sessions=user_store,
        password_hasher=DeterministicHasher(),
        auth=auth,
        audit=audit,
    )


@pytest.fixture()
def gateway() -> ZarinpalGateway:
    return ZarinpalGateway(
        ZarinpalConfig(
            merchant_id=MERCHANT_ID,
            callback_url="https://shop.example.com/api/payments/callback",
            webhook_secret=WEBHOOK_SECRET,
        ),
        PaymentsConfig(),
    )


@pytest.fixture()
def transactions() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()


def _actions(audit: MagicMock) -> list[AuditAction]:
    return [call.args[0] for call in audit.log.call_args_list]


def test_login_issues_token_and_records_session(login, user_store, auth, audit) -> None:
    user = user_store.create("09121234567", password_hash="hashed:secret123")

    result = login.execute("09121234567", "secret123", "10.0.0.1")

    assert isinstance(result, LoginResult)
    assert result.user.id == user.id
    assert [s.token for s in user_store.get(user.id).sessions] == [result.token.token]
    assert isinstance(auth.authenticate(f"Bearer {result.token.token}"), User)
    assert _actions(audit) == [AuditAction.LOGIN_SUCCESS]


@pytest.mark.parametrize("phone,password", [("09121234567", "wrong"), ("09129999999", "secret123")])
def test_login_failure_is_indistinguishable(login, user_store, audit, phone, password) -> None:
    user_store.create("09121234567", password_hash="hashed:secret123")

    result = login.execute(phone, password)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_CREDENTIALS
    assert _actions(audit) == [AuditAction.LOGIN_FAILED]
    assert audit.log.call_args.kwargs["success"] is False


def test_inactive_user_cannot_log_in(login, user_store) -> None:
    user_store.create("09121234567", password_hash="hashed:secret123", is_active=False)

    assert isinstance(login.execute("09121234567", "secret123"), Failure)


def test_logout_revokes_only_the_presented_session(login, user_store, auth, audit) -> None:
    user_store.create("09121234567", password_hash="hashed:secret123")
    first = login.execute("09121234567", "secret123")
    second = login.execute("09121234567", "secret123")
    logout = LogoutUserUseCase(sessions=user_store, audit=audit)

    assert logout.execute(first.user.id, first.token.token) is True

    revoked = auth.authenticate(f"Bearer {first.token.token}")
    assert isinstance(revoked, Failure) and revoked.kind is ErrorKind.SESSION_INVALID
    assert isinstance(auth.authenticate(f"Bearer {second.token.token}"), User)


def test_logout_with_unknown_token_reports_false(user_store, audit) -> None:
    user = user_store.create()
    logout = LogoutUserUseCase(sessions=user_store, audit=audit)

    assert logout.execute(user.id, "never-issued") is False
    assert audit.log.call_args.kwargs["success"] is False


def test_revoke_sessions_deactivates_everything(login, user_store, auth, audit) -> None:
    user_store.create("09121234567", password_hash="hashed:secret123")
    tokens = [login.execute("09121234567", "secret123").token.token for _ in range(3)]
    revoke = RevokeUserSessionsUseCase(sessions=user_store, audit=audit)

    assert revoke.execute(1, admin_id=99, ip_address="10.0.0.9") == 3
    assert revoke.execute(1, admin_id=99) == 0

    for token in tokens:
        result = auth.authenticate(f"Bearer {token}")
        assert isinstance(result, Failure) and result.kind is ErrorKind.SESSION_INVALID
    assert audit.log.call_args.kwargs["user_id"] == 99


def test_start_payment_records_pending_transaction(gateway, transactions, audit) -> None:
    use_case = StartPaymentUseCase(
        gateway=gateway, transactions=transactions, audit=audit, clock=lambda: FIXED_NOW
    )

    result = use_case.execute(user_id=7, authority=AUTHORITY, amount=5000, description="room")

    assert isinstance(result, StartedPayment)
    assert result.transaction.id.startswith("HTL")
    assert result.transaction.created_at == FIXED_NOW
    assert result.request["callback_url"] == "https://shop.example.com/api/payments/callback"
    assert transactions.find_by_authority(AUTHORITY).status is TransactionStatus.PENDING
    assert _actions(audit) == [AuditAction.PAYMENT_STARTED]


def test_start_payment_rejects_duplicate_authority(gateway, transactions, audit) -> None:
    use_case = StartPaymentUseCase(gateway=gateway, transactions=transactions, audit=audit)
    use_case.execute(user_id=7, authority=AUTHORITY, amount=5000)

    result = use_case.execute(user_id=7, authority=AUTHORITY, amount=5000)

    assert isinstance(result, Failure)
    assert result.context == {"fields": ["authority"]}
    assert len(transactions.items) == 1


def test_start_payment_reports_bad_authority_and_amount(gateway, transactions, audit) -> None:
    use_case = StartPaymentUseCase(gateway=gateway, transactions=transactions, audit=audit)

    result = use_case.execute(user_id=7, authority="short", amount=60_000_000)

    assert isinstance(result, Failure)
    assert result.context["fields"] == ["authority", "amount"]
    assert not transactions.items


def _settle(gateway, transactions, audit) -> SettleCallbackUseCase:
    return SettleCallbackUseCase(
        gateway=gateway, transactions=transactions, audit=audit, clock=lambda: FIXED_NOW
    )


def test_settle_marks_transaction(gateway, transactions, audit) -> None:
    transactions.add(Transaction(id="HTL1", authority=AUTHORITY, amount=5000, user_id=7))

    result = _settle(gateway, transactions, audit).execute(AUTHORITY, "OK", 5000, "1.2.3.4")

    assert isinstance(result, Transaction)
    assert result.status is TransactionStatus.OK
    assert result.settled_at == FIXED_NOW
    assert audit.log.call_args.kwargs["user_id"] == 7


def test_settle_rejects_amount_mismatch(gateway, transactions, audit) -> None:
    transactions.add(Transaction(id="HTL1", authority=AUTHORITY, amount=5000))

    result = _settle(gateway, transactions, audit).execute(AUTHORITY, "OK", 5001)

    assert isinstance(result, Failure)
    assert result.errors == (ERROR_AMOUNT_MISMATCH,)
    assert _actions(audit) == [AuditAction.PAYMENT_CALLBACK_REJECTED]


def test_settle_replay_is_idempotent(gateway, transactions, audit) -> None:
    transactions.add(
        Transaction(id="HTL1", authority=AUTHORITY, amount=5000, status=TransactionStatus.OK)
    )
    settle = _settle(gateway, transactions, audit)

    assert settle.execute(AUTHORITY, "OK", 5000).status is TransactionStatus.OK
    conflict = settle.execute(AUTHORITY, "NOK", 5000)

    assert isinstance(conflict, Failure)
    assert conflict.errors == (ERROR_ALREADY_SETTLED,)
    assert transactions.items["HTL1"].status is TransactionStatus.OK


def test_settle_invalid_callback_collects_errors(gateway, transactions, audit) -> None:
    result = _settle(gateway, transactions, audit).execute(None, "ok", True)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.CALLBACK_VALIDATION_FAILED
    assert len(result.errors) == 3
    assert not transactions.items


def test_settle_never_creates_a_transaction(gateway, transactions, audit) -> None:
    result = _settle(gateway, transactions, audit).execute("Z" * 36, "OK", 25_000)

    assert isinstance(result, Failure)
    assert result.errors == (ERROR_UNKNOWN_TRANSACTION,)
    assert not transactions.items
    assert _actions(audit) == [AuditAction.PAYMENT_CALLBACK_REJECTED]


def test_settle_rejects_fractional_amount(gateway, transactions, audit) -> None:
    transactions.add(Transaction(id="HTL1", authority=AUTHORITY, amount=25_000))

    result = _settle(gateway, transactions, audit).execute(AUTHORITY, "OK", 25_000.99)

    assert isinstance(result, Failure)
    assert transactions.items["HTL1"].status is TransactionStatus.PENDING
