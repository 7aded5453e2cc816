# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Error hierarchy shared by every layer.

Each error carries a stable machine-readable ``code``, the HTTP ``status`` the
boundary answers with, and an optional ``context`` mapping that is echoed to
the client. Subclasses set ``code`` and ``status`` as class attributes.
"""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, ClassVar


class AppError(Exception):
    code: ClassVar[str] = "app_error"
    status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(self.code)
        self.context = dict(context) if context else None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code}
        if self.context:
            payload["context"] = dict(self.context)
        return payload


class DomainError(AppError):
    code = "domain_error"
    status = HTTPStatus.BAD_REQUEST


class InfrastructureError(AppError):
    code = "infrastructure_error"
    status = HTTPStatus.INTERNAL_SERVER_ERROR


class ValidationError(AppError):
    code = "validation_error"
    status = HTTPStatus.BAD_REQUEST


class StorageError(InfrastructureError):
    """The relational store failed or a transaction could not be finished.

    ``operation`` names the failing call for logs and is not sent to clients.
    """

    code = "storage_error"

    def __init__(self, operation: str) -> None:
        super().__init__()
        self.operation = operation


class CacheError(InfrastructureError):
    """The key-value cache is unreachable or returned an unreadable entry."""

    code = "cache_error"

    def __init__(self, operation: str) -> None:
        super().__init__()
        self.operation = operation
