# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from authsvc.shared.errors.base import DomainError


class AuthError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED


class InvalidTokenError(AuthError):
    code = "invalid_token"
    status = HTTPStatus.UNAUTHORIZED


class ConflictError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.BAD_REQUEST


class NotFoundError(DomainError):
    code = "not_found"
    status = HTTPStatus.NOT_FOUND
