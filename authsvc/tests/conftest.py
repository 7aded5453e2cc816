from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine

from authsvc.application.services.tokens import TokenService
from authsvc.application.services.user_directory import UserDirectory
from authsvc.domain.users.repositories import PasswordHasher
from authsvc.infrastructure.cache import InMemoryUserCache
from authsvc.infrastructure.db import build_engine, build_session_factory, init_db
from authsvc.infrastructure.repositories import (
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from authsvc.infrastructure.unit_of_work import TransactionCoordinator
from authsvc.shared.config import DatabaseConfig, TokenConfig

SECRET = "test-secret-0123456789abcdef0123456789"


class DeterministicHasher(PasswordHasher):
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        return hashed == f"hashed:{password}"


class MutableClock:
    def __init__(self) -> None:
        self.now = datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = build_engine(DatabaseConfig(url=f"sqlite:///{tmp_path / 'auth.db'}"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def coordinator(engine: Engine) -> TransactionCoordinator:
    return TransactionCoordinator(build_session_factory(engine))


@pytest.fixture()
def users(coordinator: TransactionCoordinator) -> SqlAlchemyUserRepository:
    return SqlAlchemyUserRepository(coordinator)


@pytest.fixture()
def sessions(coordinator: TransactionCoordinator) -> SqlAlchemySessionRepository:
    return SqlAlchemySessionRepository(coordinator)


@pytest.fixture()
def token_config() -> TokenConfig:
    return TokenConfig(secret=SECRET, access_ttl_seconds=900, refresh_ttl_seconds=30 * 86400)


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture()
def token_service(
    sessions: SqlAlchemySessionRepository,
    coordinator: TransactionCoordinator,
    token_config: TokenConfig,
    clock: MutableClock,
) -> TokenService:
    return TokenService(
        sessions=sessions, coordinator=coordinator, config=token_config, clock=clock
    )


@pytest.fixture()
def user_cache() -> InMemoryUserCache:
    return InMemoryUserCache(ttl_seconds=60)


@pytest.fixture()
def directory(
    users: SqlAlchemyUserRepository,
    user_cache: InMemoryUserCache,
    token_service: TokenService,
) -> UserDirectory:
    return UserDirectory(
        users=users,
        cache=user_cache,
        password_hasher=DeterministicHasher(),
        tokens=token_service,
    )
