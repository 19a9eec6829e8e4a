# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select

from paygate.domain.payments.entities import Transaction as DomainTransaction
from paygate.domain.payments.entities import TransactionStatus
from paygate.domain.payments.repositories import TransactionRepository
from paygate.infrastructure.db.models import Transaction
from paygate.infrastructure.db.session import Database


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_domain(row: Transaction) -> DomainTransaction:
    return DomainTransaction(
        id=row.id,
        authority=row.authority,
        amount=row.amount,
        status=TransactionStatus(row.status),
        user_id=row.user_id,
        description=row.description or "",
        created_at=_aware(row.created_at),
        settled_at=_aware(row.settled_at),
    )


class SqlAlchemyTransactionRepository(TransactionRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def add(self, transaction: DomainTransaction) -> DomainTransaction:
        with self._db.session_scope() as session:
            row = Transaction(
                id=transaction.id,
                authority=transaction.authority,
                amount=transaction.amount,
                status=transaction.status.value,
                user_id=transaction.user_id,
                description=transaction.description,
                settled_at=transaction.settled_at,
            )
            if transaction.created_at is not None:
                row.created_at = transaction.created_at
            session.add(row)
            session.flush()
            session.refresh(row)
            return _to_domain(row)

    def find_by_authority(self, authority: str) -> DomainTransaction | None:
        with self._db.session_scope() as session:
            row = session.scalars(
                select(Transaction).where(Transaction.authority == authority)
            ).first()
            return _to_domain(row) if row is not None else None

    def save(self, transaction: DomainTransaction) -> DomainTransaction:
        with self._db.session_scope() as session:
            row = session.get(Transaction, transaction.id)
            if row is None:
                raise LookupError(f"transaction {transaction.id} does not exist")
            row.status = transaction.status.value
            row.settled_at = transaction.settled_at
            row.amount = transaction.amount
            session.flush()
            return _to_domain(row)


__all__ = ["SqlAlchemyTransactionRepository"]
