# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authsvc.infrastructure.unit_of_work import TransactionCoordinator, WorkHandle
from authsvc.shared.errors import StorageError
from authsvc.shared.logging import logger


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SqlAlchemyRepository:
    """Base for repositories bound to either standalone or ambient mode.

    The mode is fixed at construction: without a handle every call runs in
    its own transaction; with one, calls only flush and the handle's owner
    decides whether to commit.
    """

    def __init__(
        self, coordinator: TransactionCoordinator, handle: WorkHandle | None = None
    ) -> None:
        self._coordinator = coordinator
        self._handle = handle

    @property
    def in_transaction(self) -> bool:
        return self._handle is not None

    def joined(self, handle: WorkHandle) -> Self:
        return type(self)(self._coordinator, handle)

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            if self._handle is not None:
                yield self._handle.session
            else:
                with self._coordinator.standalone() as session:
                    yield session
        except SQLAlchemyError as exc:
            logger.warning(f"repo: {operation} failed with {type(exc).__name__}")
            raise StorageError(operation) from exc
