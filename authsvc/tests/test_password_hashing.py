from __future__ import annotations

from authsvc.application.services.password_hashing import WerkzeugPasswordHasher


def test_hash_and_verify() -> None:
    hasher = WerkzeugPasswordHasher()
    digest = hasher.hash("hunter22")

    assert digest != "hunter22"
    assert hasher.verify("hunter22", digest)
    assert not hasher.verify("hunter23", digest)


def test_verify_rejects_unparseable_digest() -> None:
    assert WerkzeugPasswordHasher().verify("hunter22", "not-a-digest") is False


def test_configured_method_is_used() -> None:
    hasher = WerkzeugPasswordHasher("pbkdf2:sha256:1000")
    digest = hasher.hash("hunter22")

    assert digest.startswith("pbkdf2:sha256:1000$")
    assert hasher.verify("hunter22", digest)
