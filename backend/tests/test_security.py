"""Unit tests for password hashing and token helpers."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from core import create_access_token, decode_token, hash_password, needs_rehash, verify_password
from core.config import settings


def test_hash_and_verify_password() -> None:
    hashed = hash_password("Sup3rSecret!")

    assert hashed != "Sup3rSecret!"
    assert verify_password("Sup3rSecret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_handles_malformed_hash() -> None:
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_passwords_are_compared_on_first_72_bytes() -> None:
    prefix = "a" * 72
    hashed = hash_password(prefix + "tail-one")

    assert verify_password(prefix + "tail-two", hashed)


def test_needs_rehash_tracks_configured_cost() -> None:
    hashed = hash_password("Sup3rSecret!")
    assert not needs_rehash(hashed)

    original_rounds = settings.bcrypt_rounds
    settings.bcrypt_rounds = original_rounds + 1
    try:
        assert needs_rehash(hashed)
    finally:
        settings.bcrypt_rounds = original_rounds

    assert needs_rehash("legacy-plaintext")


def test_access_token_round_trip() -> None:
    token = create_access_token("user-123")
    payload = decode_token(token)

    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_decode_rejects_foreign_token_type() -> None:
    token = jwt.encode(
        {
            "sub": "user-123",
            "type": "refresh",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        },
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(ValueError):
        decode_token(token)


def test_decode_rejects_wrong_signature() -> None:
    token = jwt.encode(
        {"sub": "user-123", "type": "access"},
        "some-other-secret",
        algorithm=settings.jwt_algorithm,
    )

    with pytest.raises(ValueError):
        decode_token(token)
