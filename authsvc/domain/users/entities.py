# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


@dataclass(slots=True, frozen=True)
class User:

    id: int
    username: str
    email: str
    password_digest: str
    admin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class RefreshSession:
    """Persisted refresh token; its existence is what makes the token exchangeable."""

    refresh_token: str
    user_id: int
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(slots=True, frozen=True)
class Token:

    token: str
    expires_at: datetime


@dataclass(slots=True, frozen=True)
class TokenPair:

    access_token: Token
    refresh_token: Token


class TokenClaims(BaseModel):
    """Claims carried by every signed token, validated when a token is decoded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    sub: int = Field(gt=0)
    exp: int
    jti: str = Field(min_length=1)
