# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .entities import RefreshSession, User


class WorkHandle(Protocol):
    """An ambient transaction shared by several repository calls."""

    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class UserRepository(Protocol):
    def create(self, user: User) -> User: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_login(self, login: str) -> User | None: ...
    def save(self, user: User) -> User: ...


class SessionRepository(Protocol):
    @property
    def in_transaction(self) -> bool: ...
    def joined(self, handle: WorkHandle) -> SessionRepository: ...
    def create(self, session: RefreshSession) -> RefreshSession: ...
    def get(self, refresh_token: str, *, for_update: bool = False) -> RefreshSession | None: ...
    def delete(self, refresh_token: str) -> bool: ...
    def delete_expired(self, now: datetime) -> int: ...


class UserCache(Protocol):
    def get(self, user_id: int) -> User | None: ...
    def set(self, user: User) -> None: ...
    def invalidate(self, user_id: int) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
