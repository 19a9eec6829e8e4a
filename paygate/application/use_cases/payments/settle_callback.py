# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from paygate.application.services.payment_gateway import ZarinpalGateway
from paygate.domain.payments.entities import Transaction, TransactionStatus
from paygate.domain.payments.repositories import TransactionRepository
from paygate.infrastructure.audit import AuditAction, AuditLogger
from paygate.shared.errors.base import ErrorKind, Failure
from paygate.shared.logging import logger

ERROR_AMOUNT_MISMATCH = "payment amount does not match the transaction"
ERROR_ALREADY_SETTLED = "transaction was already settled with a different status"
ERROR_UNKNOWN_TRANSACTION = "no payment was started for this authority"


class SettleCallbackUseCase:
    def __init__(
        self,
        *,
        gateway: ZarinpalGateway,
        transactions: TransactionRepository,
        audit: AuditLogger,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._gateway = gateway
        self._transactions = transactions
        self._audit = audit
        self._clock = clock

    def _reject(self, authority: Any, errors: tuple[str, ...], ip_address: str | None) -> Failure:
        self._audit.log(
            AuditAction.PAYMENT_CALLBACK_REJECTED,
            ip_address=ip_address,
            details={"authority": authority, "errors": list(errors)},
            success=False,
        )
        return Failure(ErrorKind.CALLBACK_VALIDATION_FAILED, errors=errors)

    def execute(
        self, authority: Any, status: Any, amount: Any, ip_address: str | None = None
    ) -> Transaction | Failure:
        validation = self._gateway.validate_callback(authority, status, amount)
        if not validation.valid:
            return self._reject(authority, validation.errors, ip_address)

        outcome = TransactionStatus(status)
        existing = self._transactions.find_by_authority(authority)

        if existing is None:
            return self._reject(authority, (ERROR_UNKNOWN_TRANSACTION,), ip_address)

        if existing.amount != amount:
            return self._reject(authority, (ERROR_AMOUNT_MISMATCH,), ip_address)

        if existing.status.settled:
            if existing.status is not outcome:
                return self._reject(authority, (ERROR_ALREADY_SETTLED,), ip_address)
            logger.info(f"Callback replay ignored: transaction={existing.id}")
            return existing

        settled = self._transactions.save(existing.settle(outcome, self._clock()))

        self._audit.log(
            AuditAction.PAYMENT_CALLBACK_ACCEPTED,
            user_id=settled.user_id,
            ip_address=ip_address,
            details={
                "transaction_id": settled.id,
                "authority": authority,
                "amount": settled.amount,
                "status": outcome.value,
            },
        )
        return settled
