# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from paygate.infrastructure.db.models import AuditLog
from paygate.infrastructure.db.session import Database
from paygate.shared.logging import logger, mask_data


class AuditAction(str, Enum):
    # Authentication
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    SESSIONS_REVOKED = "sessions_revoked"

    # Payments
    PAYMENT_STARTED = "payment_started"
    PAYMENT_CALLBACK_ACCEPTED = "payment_callback_accepted"
    PAYMENT_CALLBACK_REJECTED = "payment_callback_rejected"


_SENSITIVE_KEYS = ("password", "token", "secret", "key")
_MASKED_KEYS = ("phone", "authority", "merchant")


def _sanitize_details(details: dict[str, Any]) -> dict[str, Any]:
    sanitized = {}
    for key, value in details.items():
        key_lower = key.lower()

        if any(sensitive in key_lower for sensitive in _SENSITIVE_KEYS):
            sanitized[key] = "***REDACTED***"
        elif any(masked in key_lower for masked in _MASKED_KEYS):
            sanitized[key] = mask_data(value)
        else:
            sanitized[key] = value

    return sanitized


class AuditLogger:
    def __init__(self, database: Database | None = None) -> None:
        self._database = database

    def log(
        self,
        action: AuditAction,
        user_id: int | None = None,
        ip_address: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> None:
        timestamp = datetime.now(UTC)

        safe_details = _sanitize_details(details) if details else {}

        log_message = (
            f"AUDIT: {action.value} | "
            f"user_id={user_id} | "
            f"ip={ip_address} | "
            f"success={success}"
        )

        if safe_details:
            log_message += f" | details={safe_details}"

        if success:
            logger.info(log_message)
        else:
            logger.warning(log_message)

        if self._database is not None:
            self._store(timestamp, action, user_id, ip_address, success, safe_details)

    def _store(
        self,
        timestamp: datetime,
        action: AuditAction,
        user_id: int | None,
        ip_address: str | None,
        success: bool,
        details: dict[str, Any],
    ) -> None:
        try:
            with self._database.session_scope() as session:
                session.add(
                    AuditLog(
                        timestamp=timestamp,
                        action=action.value,
                        user_id=user_id,
                        ip_address=ip_address,
                        success=success,
                        details_json=json.dumps(details, default=str) if details else None,
                    )
                )
        except SQLAlchemyError as db_error:
            # The log line above already carries the entry.
            logger.warning(f"Failed to store audit log in database: {db_error}")


__all__ = ["AuditAction", "AuditLogger"]
