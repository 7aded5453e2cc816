# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = ("dev", "development", "test", "changeme", "")


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
    )


class DatabaseConfig(_EnvSettings):
    url: str = Field("sqlite:///authsvc.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")


class CacheConfig(_EnvSettings):
    backend: Literal["memory", "redis"] = Field("memory", alias="CACHE_BACKEND")
    redis_url: str = Field("redis://localhost:6379/0", alias="REDIS_URL")
    ttl_seconds: int = Field(60, ge=1, alias="CACHE_TTL")
    socket_timeout: float = Field(2.0, gt=0, alias="REDIS_SOCKET_TIMEOUT")


class TokenConfig(_EnvSettings):
    secret: str = Field("dev", alias="JWT_SECRET")
    access_ttl_seconds: int = Field(15 * 60, ge=1, alias="ACCESS_TOKEN_TTL")
    refresh_ttl_seconds: int = Field(30 * 24 * 60 * 60, ge=1, alias="REFRESH_TOKEN_TTL")

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_ttl_seconds)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(seconds=self.refresh_ttl_seconds)

    @model_validator(mode="after")
    def _refresh_outlives_access(self) -> "TokenConfig":
        if self.refresh_ttl_seconds <= self.access_ttl_seconds:
            raise ValueError("REFRESH_TOKEN_TTL must be longer than ACCESS_TOKEN_TTL")
        return self


class SecurityConfig(_EnvSettings):
    cookie_secure: bool = Field(False, alias="COOKIE_SECURE")
    cookie_samesite: Literal["Strict", "Lax", "None"] = Field("Lax", alias="COOKIE_SAMESITE")
    password_hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")

    @field_validator("cookie_secure", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _cache_config_factory() -> CacheConfig:
    return CacheConfig()  # type: ignore[call-arg]


def _token_config_factory() -> TokenConfig:
    return TokenConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(_EnvSettings):
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8080, ge=1, le=65535, alias="PORT")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    cache: CacheConfig = Field(default_factory=_cache_config_factory)
    tokens: TokenConfig = Field(default_factory=_token_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.tokens.secret in _INSECURE_SECRETS or len(self.tokens.secret) < 32:
            raise ValueError(
                "JWT_SECRET must be a random value of at least 32 characters in production"
            )
        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "CacheConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "TokenConfig",
    "load_config",
]
