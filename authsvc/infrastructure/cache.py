# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time
from collections.abc import Hashable
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Generic, TypeVar

import redis
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from authsvc.domain.users.entities import User
from authsvc.domain.users.repositories import UserCache
from authsvc.shared.config import CacheConfig
from authsvc.shared.errors import CacheError
from authsvc.shared.logging import logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def user_cache_key(user_id: int) -> str:
    return f"user:{user_id}"


@dataclass(slots=True)
class CacheEntry(Generic[V]):  # noqa: UP046
    value: V
    expires_at: float

    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class InMemoryTTLCache(Generic[K, V]):  # noqa: UP046
    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds
        self._lock = Lock()
        self._store: dict[K, CacheEntry[V]] = {}

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                self._store.pop(key, None)
                return None
            return entry.value

    def set(self, key: K, value: V) -> None:
        expires_at = time.monotonic() + self._ttl
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def invalidate(self, key: K) -> None:
        with self._lock:
            if key in self._store:
                logger.debug(f"cache: invalidate key={key}")
                self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            logger.debug("cache: clear all keys")
            self._store.clear()


class CachedUser(BaseModel):
    """Wire form of a user stored under ``user:<id>``."""

    id: int
    username: str
    email: str
    password_digest: str
    admin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, user: User) -> CachedUser:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            password_digest=user.password_digest,
            admin=user.admin,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def to_domain(self) -> User:
        return User(**self.model_dump())


class InMemoryUserCache(UserCache):
    def __init__(self, ttl_seconds: int = 60) -> None:
        self._cache: InMemoryTTLCache[str, User] = InMemoryTTLCache(ttl_seconds)

    def get(self, user_id: int) -> User | None:
        user = self._cache.get(user_cache_key(user_id))
        logger.debug(f"cache: {'hit' if user else 'miss'} key={user_cache_key(user_id)}")
        return user

    def set(self, user: User) -> None:
        self._cache.set(user_cache_key(user.id), user)

    def invalidate(self, user_id: int) -> None:
        self._cache.invalidate(user_cache_key(user_id))

    def close(self) -> None:
        self._cache.clear()


class RedisUserCache(UserCache):
    def __init__(self, client: redis.Redis, ttl_seconds: int = 60) -> None:
        self._client = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str, *, ttl_seconds: int = 60, socket_timeout: float = 2.0) -> RedisUserCache:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client, ttl_seconds=ttl_seconds)

    def get(self, user_id: int) -> User | None:
        key = user_cache_key(user_id)
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError("get") from exc
        if raw is None:
            logger.debug(f"cache: miss key={key}")
            return None
        try:
            return CachedUser.model_validate_json(raw).to_domain()
        except PydanticValidationError as exc:
            raise CacheError("decode") from exc

    def set(self, user: User) -> None:
        payload = CachedUser.from_domain(user).model_dump_json()
        try:
            self._client.set(user_cache_key(user.id), payload, ex=self._ttl)
        except redis.RedisError as exc:
            raise CacheError("set") from exc

    def invalidate(self, user_id: int) -> None:
        try:
            self._client.delete(user_cache_key(user_id))
        except redis.RedisError as exc:
            raise CacheError("invalidate") from exc

    def close(self) -> None:
        self._client.close()


def build_user_cache(config: CacheConfig) -> InMemoryUserCache | RedisUserCache:
    if config.backend == "redis":
        logger.info("cache: using redis backend")
        return RedisUserCache.from_url(
            config.redis_url,
            ttl_seconds=config.ttl_seconds,
            socket_timeout=config.socket_timeout,
        )
    logger.info("cache: using in-memory backend")
    return InMemoryUserCache(ttl_seconds=config.ttl_seconds)


__all__ = [
    "CachedUser",
    "InMemoryTTLCache",
    "InMemoryUserCache",
    "RedisUserCache",
    "build_user_cache",
    "user_cache_key",
]
