# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from paygate.infrastructure.db.session import Database
from paygate.shared.logging import logger


def check_database(database: Database) -> bool:
    try:
        return database.ping()
    except SQLAlchemyError as exc:
        logger.warning(f"Database health check failed: {type(exc).__name__}")
        return False


__all__ = ["check_database"]
