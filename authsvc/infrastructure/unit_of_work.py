# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Database unit of work implementation.

Repositories run in one of two modes. Standalone: every call opens a
transaction through :meth:`TransactionCoordinator.standalone`, committing on
success and rolling back on any exception. Ambient: the caller obtains a
:class:`WorkHandle` from :meth:`TransactionCoordinator.begin`, binds
repositories to it, and commits exactly once. Leaving the handle's ``with``
block without committing rolls the transaction back.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from authsvc.shared.errors import StorageError
from authsvc.shared.logging import logger


class WorkHandle(AbstractContextManager):
    """An open transaction that joined repositories share."""

    __slots__ = ("_session", "_finished")

    def __init__(self, session: Session) -> None:
        self._session = session
        self._finished = False

    def __enter__(self) -> WorkHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._finished:
            return
        if exc is not None:
            logger.warning(f"uow: rollback due to {exc_type.__name__}")
        else:
            logger.debug("uow: handle left without commit, rolling back")
        try:
            self.rollback()
        except StorageError:
            if exc is None:
                raise
            logger.exception("uow: rollback failed while handling another error")

    @property
    def session(self) -> Session:
        if self._finished:
            raise RuntimeError("WorkHandle used after commit or rollback")
        return self._session

    def commit(self) -> None:
        session = self.session
        try:
            session.commit()
            logger.debug("uow: committed")
        except SQLAlchemyError as exc:
            logger.exception("uow: commit failed")
            self._close(rollback=True)
            raise StorageError("commit") from exc
        self._close()

    def rollback(self) -> None:
        if self._finished:
            return
        try:
            self._session.rollback()
            logger.debug("uow: rolled back")
        except SQLAlchemyError as exc:
            raise StorageError("rollback") from exc
        finally:
            self._close()

    def _close(self, *, rollback: bool = False) -> None:
        self._finished = True
        try:
            if rollback:
                self._session.rollback()
        except SQLAlchemyError:
            logger.exception("uow: rollback after failed commit also failed")
        finally:
            self._session.close()
            logger.debug("uow: session closed")


@dataclass(slots=True)
class TransactionCoordinator:
    """Hands out transactions over one SQLAlchemy session factory."""

    session_factory: Callable[[], Session]

    def begin(self) -> WorkHandle:
        session = self.session_factory()
        try:
            session.begin()
        except SQLAlchemyError as exc:
            session.close()
            raise StorageError("begin") from exc
        logger.debug("uow: session opened")
        return WorkHandle(session)

    @contextmanager
    def standalone(self) -> Iterator[Session]:
        with self.begin() as handle:
            yield handle.session
            handle.commit()
