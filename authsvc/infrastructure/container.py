# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import cached_property

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from authsvc.application.services.password_hashing import WerkzeugPasswordHasher
from authsvc.application.services.tokens import TokenService
from authsvc.application.services.user_directory import UserDirectory
from authsvc.domain.users.repositories import PasswordHasher
from authsvc.infrastructure.cache import InMemoryUserCache, RedisUserCache, build_user_cache
from authsvc.infrastructure.db import build_engine, build_session_factory, init_db
from authsvc.infrastructure.repositories import (
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from authsvc.infrastructure.unit_of_work import TransactionCoordinator
from authsvc.interfaces.http.controllers.auth_controller import AuthController
from authsvc.interfaces.http.controllers.users_controller import UsersController
from authsvc.shared.config import AppConfig
from authsvc.shared.logging import logger


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @cached_property
    def engine(self) -> Engine:
        engine = build_engine(self.config.database)
        init_db(engine)
        return engine

    @cached_property
    def session_factory(self) -> sessionmaker[Session]:
        return build_session_factory(self.engine)

    @cached_property
    def coordinator(self) -> TransactionCoordinator:
        return TransactionCoordinator(self.session_factory)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        return WerkzeugPasswordHasher(self.config.security.password_hash_method)

    @cached_property
    def user_cache(self) -> InMemoryUserCache | RedisUserCache:
        return build_user_cache(self.config.cache)

    @cached_property
    def user_repository(self) -> SqlAlchemyUserRepository:
        return SqlAlchemyUserRepository(self.coordinator)

    @cached_property
    def session_repository(self) -> SqlAlchemySessionRepository:
        return SqlAlchemySessionRepository(self.coordinator)

    @cached_property
    def token_service(self) -> TokenService:
        return TokenService(
            sessions=self.session_repository,
            coordinator=self.coordinator,
            config=self.config.tokens,
        )

    @cached_property
    def user_directory(self) -> UserDirectory:
        return UserDirectory(
            users=self.user_repository,
            cache=self.user_cache,
            password_hasher=self.password_hasher,
            tokens=self.token_service,
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            users=self.user_directory,
            tokens=self.token_service,
            security=self.config.security,
        )

    @cached_property
    def users_controller(self) -> UsersController:
        return UsersController(users=self.user_directory, tokens=self.token_service)

    def close(self) -> None:
        if "user_cache" in self.__dict__:
            try:
                self.user_cache.close()
            except Exception:
                logger.exception("Error stopping cache client")
        if "engine" in self.__dict__:
            self.engine.dispose()
        logger.info("Container closed")
