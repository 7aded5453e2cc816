# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import cast

from flask import Request, g, request

from authsvc.application.services.tokens import TokenService
from authsvc.domain.users.exceptions import InvalidTokenError
from authsvc.shared.logging import logger

ACCESS_COOKIE = "Authorization"


class AuthedRequest(Request):
    user_id: int


def authed_request() -> AuthedRequest:
    """Return the current request cast to include authentication attributes."""
    return cast(AuthedRequest, request)


def bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[7:].strip()
    return request.cookies.get(ACCESS_COOKIE, "")


def auth_required(tokens: TokenService) -> Callable:
    """Reject the request with 401 unless it carries a valid access token."""

    def decorator(f):
        @wraps(f)
        def inner(*a, **kw):
            token = bearer_token()
            if not token:
                logger.warning(f"No Authorization header/cookie on {request.method} {request.path}")
                raise InvalidTokenError()

            user_id = tokens.authenticate_jwt(token)
            request.user_id = user_id
            g.user_id = user_id
            logger.debug(f"Auth OK: user={user_id} {request.method} {request.path}")
            return f(*a, **kw)

        return inner

    return decorator
