# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select

from authsvc.domain.users.entities import RefreshSession as DomainRefreshSession
from authsvc.domain.users.repositories import SessionRepository
from authsvc.infrastructure.db.models import RefreshSession

from .base import SqlAlchemyRepository, as_utc


def _to_domain(row: RefreshSession) -> DomainRefreshSession:
    return DomainRefreshSession(
        refresh_token=row.refresh_token,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
    )


class SqlAlchemySessionRepository(SqlAlchemyRepository, SessionRepository):
    def create(self, session: DomainRefreshSession) -> DomainRefreshSession:
        with self._session("sessions.create") as db:
            row = RefreshSession(
                refresh_token=session.refresh_token,
                user_id=session.user_id,
                expires_at=session.expires_at,
                created_at=session.created_at,
            )
            db.add(row)
            db.flush()
            return _to_domain(row)

    def get(self, refresh_token: str, *, for_update: bool = False) -> DomainRefreshSession | None:
        with self._session("sessions.get") as db:
            stmt = select(RefreshSession).where(RefreshSession.refresh_token == refresh_token)
            if for_update:
                stmt = stmt.with_for_update()
            row = db.scalars(stmt).first()
            return _to_domain(row) if row else None

    def delete(self, refresh_token: str) -> bool:
        with self._session("sessions.delete") as db:
            result = db.execute(
                delete(RefreshSession).where(RefreshSession.refresh_token == refresh_token)
            )
            return result.rowcount > 0

    def delete_expired(self, now: datetime) -> int:
        with self._session("sessions.delete_expired") as db:
            result = db.execute(
                delete(RefreshSession)
                .where(RefreshSession.expires_at < now)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount
