# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

MASK_CHAR = "*"
VISIBLE_TAIL = 4
SHORT_MASK = MASK_CHAR * VISIBLE_TAIL

SENSITIVE_PATTERNS = [
    # Bearer tokens and JWTs
    (r"(bearer\s+)([a-zA-Z0-9_\-\.]{20,})", r"\1***REDACTED***", re.IGNORECASE),
    (r"\beyJ[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+\.[a-zA-Z0-9_\-]+", r"***JWT***"),
    (r"(token\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-\.]{20,})(['\"]?)", r"\1***REDACTED***\3"),

    # Secrets and keys
    (r"(secret\s*[:=]\s*['\"]?)([^'\"\s,}]{8,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),
    (r"(api[_-]?key\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-]{20,})(['\"]?)", r"\1***REDACTED***\3"),

    # Passwords
    (r"(password\s*[:=]\s*['\"]?)([^'\"]{1,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),

    # Database URLs with credentials
    (r"(postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|rediss)://([^:/@]+):([^@]+)@", r"\1://\2:***REDACTED***@"),

    # Iranian mobile numbers
    (r"\b09\d{5}(\d{4})\b", r"09*****\1"),

    # Card numbers
    (r"\b\d{4}[- ]?\d{4}[- ]?\d{4}[- ]?\d{4}\b", r"****-****-****-****"),

    # Authorization headers
    (r"(authorization\s*:\s*['\"]?)([^'\"]{10,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),
]


def mask_data(value: Any) -> str:
    """Hide all but the last four characters of ``value``.

    The result keeps the input length so masked values can still be lined up
    against gateway-side records. Values of four characters or fewer, and
    anything that is not a string, collapse to a fixed four-character mask.
    """
    if not isinstance(value, str) or len(value) <= VISIBLE_TAIL:
        return SHORT_MASK
    return MASK_CHAR * (len(value) - VISIBLE_TAIL) + value[-VISIBLE_TAIL:]


def sanitize_message(message: str) -> str:
    sanitized = message

    for pattern_tuple in SENSITIVE_PATTERNS:
        if len(pattern_tuple) == 2:
            pattern, replacement = pattern_tuple
            flags = 0
        else:
            pattern, replacement, flags = pattern_tuple

        sanitized = re.sub(pattern, replacement, sanitized, flags=flags)

    return sanitized


def sanitize_record(record: dict[str, Any]) -> bool:
    if "message" in record:
        record["message"] = sanitize_message(record["message"])
    return True


__all__ = ["SHORT_MASK", "mask_data", "sanitize_message", "sanitize_record"]
