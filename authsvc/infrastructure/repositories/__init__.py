# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .sessions import SqlAlchemySessionRepository
from .users import SqlAlchemyUserRepository

__all__ = ["SqlAlchemySessionRepository", "SqlAlchemyUserRepository"]
