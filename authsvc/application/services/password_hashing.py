"""Password digests for stored credentials."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from authsvc.domain.users.repositories import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    """Salted digests via werkzeug; ``method`` is any werkzeug hash spec."""

    def __init__(self, method: str = "scrypt", salt_length: int = 16) -> None:
        self._method = method
        self._salt_length = salt_length

    def hash(self, password: str) -> str:
        return generate_password_hash(password, method=self._method, salt_length=self._salt_length)

    def verify(self, password: str, hashed: str) -> bool:
        # Digests written by another hasher (or corrupted rows) never match.
        try:
            return check_password_hash(hashed, password)
        except ValueError:
            return False
