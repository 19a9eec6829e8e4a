# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from paygate.application.services.payment_gateway import AUTHORITY_LENGTH, ZarinpalGateway
from paygate.domain.payments.entities import Transaction, TransactionStatus
from paygate.domain.payments.repositories import TransactionRepository
from paygate.infrastructure.audit import AuditAction, AuditLogger
from paygate.shared.errors.base import ErrorKind, Failure


@dataclass(slots=True, frozen=True)
class StartedPayment:
    transaction: Transaction
    request: dict[str, Any]


class StartPaymentUseCase:
    """Registers a pending transaction for an authority the gateway just issued."""

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

    def execute(
        self,
        *,
        user_id: int,
        authority: str,
        amount: int,
        description: str = "",
        ip_address: str | None = None,
    ) -> StartedPayment | Failure:
        problems = []
        if len(authority) != AUTHORITY_LENGTH:
            problems.append({"field": "authority", "type": "length"})
        if not self._gateway.amount_in_range(amount):
            problems.append({"field": "amount", "type": "range"})
        if problems:
            return Failure(
                ErrorKind.VALIDATION_FAILED,
                context={"fields": [p["field"] for p in problems], "errors": problems},
            )

        if self._transactions.find_by_authority(authority) is not None:
            return Failure(
                ErrorKind.VALIDATION_FAILED,
                message="A transaction for this authority already exists.",
                context={"fields": ["authority"]},
            )

        request = self._gateway.payment_request(amount, description)
        transaction = self._transactions.add(
            Transaction(
                id=request["transaction_id"],
                authority=authority,
                amount=amount,
                status=TransactionStatus.PENDING,
                user_id=user_id,
                description=description,
                created_at=self._clock(),
            )
        )
        self._audit.log(
            AuditAction.PAYMENT_STARTED,
            user_id=user_id,
            ip_address=ip_address,
            details={"transaction_id": transaction.id, "authority": authority, "amount": amount},
        )
        return StartedPayment(transaction=transaction, request=request)
