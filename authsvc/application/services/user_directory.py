# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from authsvc.application.services.tokens import TokenService
from authsvc.domain.users.entities import TokenPair, User
from authsvc.domain.users.exceptions import AuthError, NotFoundError
from authsvc.domain.users.repositories import PasswordHasher, UserCache, UserRepository
from authsvc.shared.errors import CacheError
from authsvc.shared.logging import logger

CacheErrorHook = Callable[[str, int, Exception], None]


def log_cache_error(operation: str, user_id: int, exc: Exception) -> None:
    logger.warning(f"users.cache: {operation} failed id={user_id} error={exc!r}")


class UserDirectory:
    """Registration, login and cache-aside lookups of users.

    The user store is the source of truth. Cache failures never fail a call;
    they are reported to ``on_cache_error`` and the store is used instead.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        cache: UserCache,
        password_hasher: PasswordHasher,
        tokens: TokenService,
        on_cache_error: CacheErrorHook = log_cache_error,
    ) -> None:
        if getattr(users, "in_transaction", False):
            raise ValueError("UserDirectory needs a user repository without an ambient transaction")
        self._users = users
        self._cache = cache
        self._password_hasher = password_hasher
        self._tokens = tokens
        self._on_cache_error = on_cache_error
        # Checked against for unknown logins so both rejection paths cost one verify.
        self._dummy_digest = password_hasher.hash("authsvc-timing-dummy")

    def register(self, username: str, email: str, password: str) -> tuple[User, TokenPair]:
        digest = self._password_hasher.hash(password)
        user = self._users.create(
            User(id=0, username=username, email=email, password_digest=digest)
        )
        logger.info(f"users.register: created user_id={user.id}")
        self._cache_user(user)

        try:
            pair = self._tokens.create_jwt(user.id)
        except Exception:
            logger.exception(f"users.register: token pair not issued user_id={user.id}")
            raise
        return user, pair

    def login(self, login: str, password: str) -> tuple[User, TokenPair]:
        user = self._users.get_by_login(login)
        if user is None:
            self._password_hasher.verify(password, self._dummy_digest)
            logger.info("users.login: rejected")
            raise AuthError()
        if not self._password_hasher.verify(password, user.password_digest):
            logger.info("users.login: rejected")
            raise AuthError()

        try:
            pair = self._tokens.create_jwt(user.id)
        except Exception:
            logger.exception(f"users.login: token pair not issued user_id={user.id}")
            raise
        logger.info(f"users.login: ok user_id={user.id}")
        return user, pair

    def get(self, user_id: int) -> User:
        try:
            cached = self._cache.get(user_id)
        except CacheError as exc:
            self._on_cache_error("get", user_id, exc)
            cached = None
        if cached is not None:
            return cached

        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(context={"user_id": user_id})
        self._cache_user(user)
        return user

    def _cache_user(self, user: User) -> None:
        try:
            self._cache.set(user)
        except CacheError as exc:
            self._on_cache_error("set", user.id, exc)
