from __future__ import annotations

import base64
import json
import threading
from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from authsvc.application.services.tokens import TokenService
from authsvc.domain.users.entities import RefreshSession
from authsvc.domain.users.exceptions import InvalidTokenError
from authsvc.infrastructure.repositories import SqlAlchemySessionRepository
from authsvc.infrastructure.unit_of_work import TransactionCoordinator
from authsvc.shared.config import TokenConfig
from authsvc.shared.errors import StorageError

SECRET = "test-secret-0123456789abcdef0123456789"


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _future_exp() -> int:
    return int((datetime.now(UTC) + timedelta(minutes=5)).timestamp())


def test_create_then_authenticate_both_tokens(token_service: TokenService) -> None:
    pair = token_service.create_jwt(42)

    assert token_service.authenticate_jwt(pair.access_token.token) == 42
    assert token_service.authenticate_jwt(pair.refresh_token.token) == 42
    assert pair.access_token.token != pair.refresh_token.token


def test_expiries_follow_configured_ttls(token_service: TokenService, clock) -> None:
    pair = token_service.create_jwt(1)

    assert pair.access_token.expires_at == (clock.now + timedelta(minutes=15)).replace(microsecond=0)
    assert pair.refresh_token.expires_at == (clock.now + timedelta(days=30)).replace(microsecond=0)


def test_create_persists_refresh_session(
    token_service: TokenService, sessions: SqlAlchemySessionRepository
) -> None:
    pair = token_service.create_jwt(5)

    stored = sessions.get(pair.refresh_token.token)
    assert stored is not None
    assert stored.user_id == 5
    assert stored.expires_at == pair.refresh_token.expires_at
    assert sessions.get(pair.access_token.token) is None


def test_tokens_minted_in_same_second_are_distinct(token_service: TokenService) -> None:
    first = token_service.create_jwt(3)
    second = token_service.create_jwt(3)

    assert first.refresh_token.token != second.refresh_token.token
    assert first.access_token.token != second.access_token.token


def test_create_inside_ambient_transaction_rolls_back_with_it(
    token_service: TokenService,
    coordinator: TransactionCoordinator,
    sessions: SqlAlchemySessionRepository,
) -> None:
    with coordinator.begin() as handle:
        pair = token_service.create_jwt(9, handle)
        handle.rollback()

    assert sessions.get(pair.refresh_token.token) is None


def test_service_refuses_joined_repository(
    coordinator: TransactionCoordinator,
    sessions: SqlAlchemySessionRepository,
    token_config: TokenConfig,
) -> None:
    with coordinator.begin() as handle:
        with pytest.raises(ValueError):
            TokenService(
                sessions=sessions.joined(handle), coordinator=coordinator, config=token_config
            )


def test_authenticate_rejects_token_signed_with_other_key(token_service: TokenService) -> None:
    forged = jwt.encode(
        {"sub": "1", "exp": _future_exp(), "jti": "x"}, "another-key", algorithm="HS256"
    )

    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(forged)


def test_authenticate_rejects_other_hmac_algorithm(token_service: TokenService) -> None:
    token = jwt.encode({"sub": "1", "exp": _future_exp(), "jti": "x"}, SECRET, algorithm="HS512")

    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(token)


def test_authenticate_rejects_unsigned_token(token_service: TokenService) -> None:
    token = ".".join(
        [_b64({"alg": "none", "typ": "JWT"}), _b64({"sub": "1", "exp": _future_exp(), "jti": "x"}), ""]
    )

    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(token)


def test_authenticate_rejects_expired_token(token_service: TokenService, clock) -> None:
    clock.advance(timedelta(hours=-1))
    pair = token_service.create_jwt(1)

    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(pair.access_token.token)


@pytest.mark.parametrize(
    "claims",
    [
        {"jti": "x"},
        {"sub": "abc", "jti": "x"},
        {"sub": "0", "jti": "x"},
        {"sub": "1"},
    ],
)
def test_authenticate_rejects_bad_claims(token_service: TokenService, claims: dict) -> None:
    payload = dict(claims)
    payload.setdefault("exp", _future_exp())
    token = jwt.encode(payload, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "eyJhbGciOiJIUzI1NiJ9.."])
def test_authenticate_rejects_malformed(token_service: TokenService, token: str) -> None:
    with pytest.raises(InvalidTokenError):
        token_service.authenticate_jwt(token)


def test_refresh_rotates_and_old_token_is_not_replayable(
    token_service: TokenService, sessions: SqlAlchemySessionRepository
) -> None:
    original = token_service.create_jwt(7)

    rotated = token_service.refresh_jwt(original.refresh_token.token)

    assert token_service.authenticate_jwt(rotated.access_token.token) == 7
    assert sessions.get(original.refresh_token.token) is None
    assert sessions.get(rotated.refresh_token.token) is not None
    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(original.refresh_token.token)


def test_refresh_rejects_access_token(token_service: TokenService) -> None:
    pair = token_service.create_jwt(7)

    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(pair.access_token.token)


def test_refresh_rejects_session_owned_by_other_user(
    token_service: TokenService, sessions: SqlAlchemySessionRepository
) -> None:
    pair = token_service.create_jwt(7)
    sessions.delete(pair.refresh_token.token)
    now = datetime.now(UTC)
    sessions.create(
        RefreshSession(
            refresh_token=pair.refresh_token.token,
            user_id=8,
            expires_at=now + timedelta(days=1),
            created_at=now,
        )
    )

    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(pair.refresh_token.token)
    assert sessions.get(pair.refresh_token.token) is not None


def test_refresh_rejects_session_past_stored_expiry(
    token_service: TokenService, sessions: SqlAlchemySessionRepository, clock
) -> None:
    pair = token_service.create_jwt(7)
    clock.advance(timedelta(days=31))

    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(pair.refresh_token.token)
    assert sessions.get(pair.refresh_token.token) is not None


def test_failed_rotation_keeps_old_session(
    token_service: TokenService,
    sessions: SqlAlchemySessionRepository,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    pair = token_service.create_jwt(7)
    original_create = SqlAlchemySessionRepository.create

    def failing_create(self, session):
        if self.in_transaction:
            raise StorageError("create")
        return original_create(self, session)

    monkeypatch.setattr(SqlAlchemySessionRepository, "create", failing_create)

    with pytest.raises(StorageError):
        token_service.refresh_jwt(pair.refresh_token.token)

    monkeypatch.undo()
    assert sessions.get(pair.refresh_token.token) is not None
    assert token_service.refresh_jwt(pair.refresh_token.token) is not None


def test_concurrent_refresh_has_single_winner(token_service: TokenService) -> None:
    pair = token_service.create_jwt(11)
    workers = 4
    barrier = threading.Barrier(workers)
    results: list[object] = []
    lock = threading.Lock()

    def attempt() -> None:
        barrier.wait()
        try:
            outcome: object = token_service.refresh_jwt(pair.refresh_token.token)
        except InvalidTokenError as exc:
            outcome = exc
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    winners = [r for r in results if not isinstance(r, InvalidTokenError)]
    losers = [r for r in results if isinstance(r, InvalidTokenError)]
    assert len(results) == workers
    assert len(winners) == 1
    assert len(losers) == workers - 1


def test_logout_is_idempotent(
    token_service: TokenService, sessions: SqlAlchemySessionRepository
) -> None:
    pair = token_service.create_jwt(4)

    token_service.logout_jwt(pair.refresh_token.token)
    token_service.logout_jwt(pair.refresh_token.token)
    token_service.logout_jwt("never-issued")

    assert sessions.get(pair.refresh_token.token) is None


def test_refresh_after_logout_fails(token_service: TokenService) -> None:
    pair = token_service.create_jwt(4)
    token_service.logout_jwt(pair.refresh_token.token)

    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(pair.refresh_token.token)


def test_access_token_still_valid_after_logout(token_service: TokenService) -> None:
    pair = token_service.create_jwt(4)
    token_service.logout_jwt(pair.refresh_token.token)

    assert token_service.authenticate_jwt(pair.access_token.token) == 4


def test_purge_removes_only_expired_sessions(
    token_service: TokenService, sessions: SqlAlchemySessionRepository, clock
) -> None:
    stale = token_service.create_jwt(1)
    clock.advance(timedelta(days=20))
    fresh = token_service.create_jwt(2)
    clock.advance(timedelta(days=15))

    assert token_service.purge_expired_sessions() == 1
    assert sessions.get(stale.refresh_token.token) is None
    assert sessions.get(fresh.refresh_token.token) is not None


def test_refresh_allowed_at_the_stored_expiry_instant(
    token_service: TokenService, clock
) -> None:
    pair = token_service.create_jwt(7)
    clock.now = pair.refresh_token.expires_at

    rotated = token_service.refresh_jwt(pair.refresh_token.token)

    assert token_service.authenticate_jwt(rotated.access_token.token) == 7


def test_refresh_rejected_one_second_after_stored_expiry(
    token_service: TokenService, clock
) -> None:
    pair = token_service.create_jwt(7)
    clock.now = pair.refresh_token.expires_at + timedelta(seconds=1)

    with pytest.raises(InvalidTokenError):
        token_service.refresh_jwt(pair.refresh_token.token)
