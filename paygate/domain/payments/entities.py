# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    OK = "OK"
    NOK = "NOK"

    @property
    def settled(self) -> bool:
        return self is not TransactionStatus.PENDING


@dataclass(slots=True, frozen=True)
class Transaction:
    id: str
    authority: str
    amount: int
    status: TransactionStatus = TransactionStatus.PENDING
    user_id: int | None = None
    description: str = ""
    created_at: datetime | None = None
    settled_at: datetime | None = None

    def settle(self, status: TransactionStatus, when: datetime) -> Transaction:
        return replace(self, status=status, settled_at=when)


@dataclass(slots=True, frozen=True)
class CallbackValidation:
    valid: bool
    errors: tuple[str, ...] = field(default_factory=tuple)


__all__ = ["CallbackValidation", "Transaction", "TransactionStatus"]
