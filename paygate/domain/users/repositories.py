# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import Session, User


class UserRepository(Protocol):
    def find_active_by_id(self, user_id: int) -> User | None: ...
    def find_active_by_phone(self, phone: str) -> User | None: ...


class SessionRepository(Protocol):
    def add(self, user_id: int, session: Session) -> Session: ...
    def deactivate(self, user_id: int, token: str) -> bool: ...
    def deactivate_all(self, user_id: int) -> int: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
