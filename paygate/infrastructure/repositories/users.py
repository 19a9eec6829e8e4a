# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from paygate.domain.users.entities import Session as DomainSession
from paygate.domain.users.entities import User as DomainUser
from paygate.domain.users.repositories import SessionRepository, UserRepository
from paygate.infrastructure.db.models import User, UserSession
from paygate.infrastructure.db.session import Database


def _aware(value: datetime) -> datetime:
    # SQLite drops the offset on the way back out.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _to_domain_session(row: UserSession) -> DomainSession:
    return DomainSession(
        token=row.token,
        issued_at=_aware(row.issued_at),
        expires_at=_aware(row.expires_at),
        is_active=row.is_active,
    )


def _to_domain_user(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        phone=row.phone,
        is_admin=row.is_admin,
        is_active=row.is_active,
        sessions=tuple(_to_domain_session(s) for s in row.sessions),
        password_hash=row.password_hash,
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def _find_active(self, *criteria) -> DomainUser | None:
        with self._db.session_scope() as session:
            row = session.scalars(
                select(User)
                .options(selectinload(User.sessions))
                .where(User.is_active.is_(True), *criteria)
            ).first()
            if row is None:
                return None
            return _to_domain_user(row)

    def find_active_by_id(self, user_id: int) -> DomainUser | None:
        return self._find_active(User.id == user_id)

    def find_active_by_phone(self, phone: str) -> DomainUser | None:
        return self._find_active(User.phone == phone)

    def add(self, phone: str, password_hash: str, *, is_admin: bool = False) -> DomainUser:
        with self._db.session_scope() as session:
            row = User(phone=phone, password_hash=password_hash, is_admin=is_admin)
            session.add(row)
            session.flush()
            session.refresh(row)
            return DomainUser(
                id=row.id,
                phone=row.phone,
                is_admin=row.is_admin,
                is_active=row.is_active,
                password_hash=row.password_hash,
            )


class SqlAlchemySessionRepository(SessionRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def add(self, user_id: int, session_value: DomainSession) -> DomainSession:
        with self._db.session_scope() as session:
            session.add(
                UserSession(
                    user_id=user_id,
                    token=session_value.token,
                    issued_at=session_value.issued_at,
                    expires_at=session_value.expires_at,
                    is_active=session_value.is_active,
                )
            )
        return session_value

    def deactivate(self, user_id: int, token: str) -> bool:
        with self._db.session_scope() as session:
            result = session.execute(
                update(UserSession)
                .where(
                    UserSession.user_id == user_id,
                    UserSession.token == token,
                    UserSession.is_active.is_(True),
                )
                .values(is_active=False)
            )
            return bool(result.rowcount)

    def deactivate_all(self, user_id: int) -> int:
        with self._db.session_scope() as session:
            result = session.execute(
                update(UserSession)
                .where(UserSession.user_id == user_id, UserSession.is_active.is_(True))
                .values(is_active=False)
            )
            return int(result.rowcount or 0)


__all__ = ["SqlAlchemySessionRepository", "SqlAlchemyUserRepository"]
