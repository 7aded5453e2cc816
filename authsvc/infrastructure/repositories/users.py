# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from authsvc.domain.users.entities import User as DomainUser
from authsvc.domain.users.exceptions import ConflictError, NotFoundError
from authsvc.domain.users.repositories import UserRepository
from authsvc.infrastructure.db.models import User

from .base import SqlAlchemyRepository, as_utc


def _to_domain(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        username=row.username,
        email=row.email,
        password_digest=row.password_digest,
        admin=bool(row.admin),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):
    def create(self, user: DomainUser) -> DomainUser:
        with self._session("users.create") as session:
            row = User(
                username=user.username,
                email=user.email,
                password_digest=user.password_digest,
                admin=user.admin,
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError() from exc
            session.refresh(row)
            return _to_domain(row)

    def get_by_id(self, user_id: int) -> DomainUser | None:
        with self._session("users.get_by_id") as session:
            row = session.get(User, user_id)
            return _to_domain(row) if row else None

    def get_by_login(self, login: str) -> DomainUser | None:
        """Find a user whose username or email equals ``login`` exactly."""
        with self._session("users.get_by_login") as session:
            row = session.scalars(
                select(User)
                .where(or_(User.username == login, User.email == login))
                .order_by(User.id.asc())
                .limit(1)
            ).first()
            return _to_domain(row) if row else None

    def save(self, user: DomainUser) -> DomainUser:
        with self._session("users.save") as session:
            row = session.get(User, user.id)
            if row is None:
                raise NotFoundError(context={"user_id": user.id})
            row.username = user.username
            row.email = user.email
            row.password_digest = user.password_digest
            row.admin = user.admin
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError() from exc
            session.refresh(row)
            return _to_domain(row)
