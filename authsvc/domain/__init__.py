# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .users.entities import RefreshSession, Token, TokenClaims, TokenPair, User
from .users.exceptions import AuthError, ConflictError, InvalidTokenError, NotFoundError

__all__ = [
    "AuthError",
    "ConflictError",
    "InvalidTokenError",
    "NotFoundError",
    "RefreshSession",
    "Token",
    "TokenClaims",
    "TokenPair",
    "User",
]
