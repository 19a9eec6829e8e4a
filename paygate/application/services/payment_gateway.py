# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from datetime import UTC, datetime
from numbers import Integral, Real
from threading import Lock
from typing import Any

from paygate.domain.payments.entities import CallbackValidation, TransactionStatus
from paygate.shared.config import PaymentsConfig, ZarinpalConfig
from paygate.shared.logging import logger, mask_data

AUTHORITY_LENGTH = 36
SUFFIX_MIN = 1000
SUFFIX_MAX = 9999

ERROR_AUTHORITY = "authority code is not valid"
ERROR_STATUS = "payment status is not valid"
ERROR_AMOUNT = "payment amount must be a whole number within the allowed range"


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


class ZarinpalGateway:
    """Local half of the Zarinpal integration: ids, callback checks, health."""

    def __init__(
        self,
        config: ZarinpalConfig,
        payments: PaymentsConfig,
        *,
        clock_ms: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._config = config
        self._payments = payments
        self._clock_ms = clock_ms
        self._lock = Lock()
        self._last_ms = -1
        self._used_suffixes: set[int] = set()

    @property
    def sandbox(self) -> bool:
        return self._config.sandbox

    def generate_transaction_id(self) -> str:
        with self._lock:
            now = max(self._clock_ms(), self._last_ms)
            if now != self._last_ms:
                self._last_ms = now
                self._used_suffixes = set()
            if len(self._used_suffixes) >= SUFFIX_MAX - SUFFIX_MIN + 1:
                self._last_ms += 1
                self._used_suffixes = set()
            while True:
                suffix = SUFFIX_MIN + secrets.randbelow(SUFFIX_MAX - SUFFIX_MIN + 1)
                if suffix not in self._used_suffixes:
                    break
            self._used_suffixes.add(suffix)
            return f"{self._payments.transaction_prefix}{self._last_ms}{suffix}"

    def amount_in_range(self, amount: Any) -> bool:
        if isinstance(amount, bool) or not isinstance(amount, Real):
            return False
        # Amounts are whole units of the smallest currency.
        if not isinstance(amount, Integral) and not float(amount).is_integer():
            return False
        return self._payments.min_amount <= amount <= self._payments.max_amount

    def validate_callback(self, authority: Any, status: Any, amount: Any) -> CallbackValidation:
        errors: list[str] = []

        if not isinstance(authority, str) or len(authority) != AUTHORITY_LENGTH:
            errors.append(ERROR_AUTHORITY)

        if status not in (TransactionStatus.OK.value, TransactionStatus.NOK.value):
            errors.append(ERROR_STATUS)

        if not self.amount_in_range(amount):
            errors.append(ERROR_AMOUNT)

        valid = not errors
        if valid:
            logger.info(
                f"Callback validated: authority={self.mask_data(authority)}, "
                f"amount={amount}, status={status}"
            )
        else:
            logger.warning(
                f"Callback validation failed: authority={self.mask_data(authority)}, "
                f"errors={errors}"
            )
        return CallbackValidation(valid=valid, errors=tuple(errors))

    @staticmethod
    def mask_data(value: Any) -> str:
        return mask_data(value)

    def payment_request(self, amount: int, description: str = "") -> dict[str, Any]:
        return {
            "transaction_id": self.generate_transaction_id(),
            "amount": amount,
            "currency": self._payments.currency,
            "description": description,
            "callback_url": self._config.callback_url,
            "sandbox": self._config.sandbox,
            "start_pay_url": self._config.start_pay_url,
        }

    def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "service": "zarinpal",
            "sandbox": self._config.sandbox,
            "merchant_id": self.mask_data(self._config.merchant_id),
            "timestamp": datetime.now(UTC).isoformat(),
        }


__all__ = ["AUTHORITY_LENGTH", "ZarinpalGateway"]
