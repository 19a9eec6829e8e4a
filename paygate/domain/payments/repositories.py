# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import Transaction


class TransactionRepository(Protocol):
    def add(self, transaction: Transaction) -> Transaction: ...
    def find_by_authority(self, authority: str) -> Transaction | None: ...
    def save(self, transaction: Transaction) -> Transaction: ...
