# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Token minting, verification, rotation and revocation.

Access tokens are verified statelessly. Refresh tokens are additionally
backed by a row in the session store; the row is the only thing that makes a
refresh token exchangeable, so rotation deletes it and inserts the next one in
a single transaction.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from authsvc.domain.users.entities import RefreshSession, Token, TokenClaims, TokenPair
from authsvc.domain.users.exceptions import InvalidTokenError
from authsvc.domain.users.repositories import SessionRepository, WorkHandle
from authsvc.infrastructure.unit_of_work import TransactionCoordinator
from authsvc.shared.config import TokenConfig
from authsvc.shared.logging import logger

ALGORITHM = "HS256"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenService:
    def __init__(
        self,
        *,
        sessions: SessionRepository,
        coordinator: TransactionCoordinator,
        config: TokenConfig,
        clock: Clock = _utcnow,
    ) -> None:
        if sessions.in_transaction:
            raise ValueError("TokenService needs a session repository without an ambient transaction")
        self._sessions = sessions
        self._coordinator = coordinator
        self._secret = config.secret
        self._access_ttl = config.access_ttl
        self._refresh_ttl = config.refresh_ttl
        self._clock = clock

    def create_jwt(self, user_id: int, handle: WorkHandle | None = None) -> TokenPair:
        pair = self._create_token_pair(user_id)
        sessions = self._sessions.joined(handle) if handle is not None else self._sessions
        sessions.create(self._session_for(user_id, pair))
        logger.info(f"tokens.create: ok user_id={user_id}")
        return pair

    def authenticate_jwt(self, token: str) -> int:
        return self._decode(token).sub

    def refresh_jwt(self, refresh_token: str) -> TokenPair:
        claims = self._decode(refresh_token)

        with self._coordinator.begin() as handle:
            sessions = self._sessions.joined(handle)
            stored = sessions.get(refresh_token, for_update=True)
            if stored is None:
                logger.warning(f"tokens.refresh: unknown session user_id={claims.sub}")
                raise InvalidTokenError()
            if stored.user_id != claims.sub:
                logger.warning(
                    f"tokens.refresh: subject mismatch claim={claims.sub} stored={stored.user_id}"
                )
                raise InvalidTokenError()
            if stored.is_expired(self._clock()):
                logger.warning(f"tokens.refresh: stored session expired user_id={stored.user_id}")
                raise InvalidTokenError()

            pair = self._create_token_pair(stored.user_id)
            sessions.delete(refresh_token)
            sessions.create(self._session_for(stored.user_id, pair))
            handle.commit()

        logger.info(f"tokens.refresh: rotated user_id={stored.user_id}")
        return pair

    def logout_jwt(self, refresh_token: str) -> None:
        removed = self._sessions.delete(refresh_token)
        logger.info(f"tokens.logout: ok removed={removed}")

    def purge_expired_sessions(self) -> int:
        count = self._sessions.delete_expired(self._clock())
        logger.info(f"tokens.purge: removed {count} expired sessions")
        return count

    def _decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
            return TokenClaims.model_validate(payload)
        except (JWTError, PydanticValidationError) as exc:
            logger.debug(f"tokens.decode: rejected ({type(exc).__name__})")
            raise InvalidTokenError() from exc

    def _create_token_pair(self, user_id: int) -> TokenPair:
        return TokenPair(
            access_token=self._generate_token(user_id, self._access_ttl),
            refresh_token=self._generate_token(user_id, self._refresh_ttl),
        )

    def _generate_token(self, user_id: int, ttl: timedelta) -> Token:
        expires_at = (self._clock() + ttl).replace(microsecond=0)
        claims = {
            "sub": str(user_id),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return Token(
            token=jwt.encode(claims, self._secret, algorithm=ALGORITHM),
            expires_at=expires_at,
        )

    def _session_for(self, user_id: int, pair: TokenPair) -> RefreshSession:
        return RefreshSession(
            refresh_token=pair.refresh_token.token,
            user_id=user_id,
            expires_at=pair.refresh_token.expires_at,
            created_at=self._clock(),
        )
