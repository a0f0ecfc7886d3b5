"""
Tests for password hashing and the token issuer.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from src.config import settings
from src.core.security import (
    hash_password,
    verify_password,
    dummy_verify_password,
    issue_token,
    decode_token,
    create_access_token,
    create_refresh_token,
    verify_access_token,
    verify_refresh_token,
    TokenExpiredError,
    TokenInvalidError,
)

CLAIMS = {"userId": 7, "email": "a@x.com"}


def test_hash_password_is_salted_and_verifiable():
    first = hash_password("secret123")
    second = hash_password("secret123")

    assert first != "secret123"
    assert first != second
    assert verify_password("secret123", first)
    assert verify_password("secret123", second)


def test_verify_password_rejects_wrong_password():
    hashed = hash_password("secret123")
    assert not verify_password("wrong", hashed)


def test_dummy_verify_runs_a_bcrypt_check(monkeypatch):
    from src.core import security

    seen = []
    real_dummy_verify = security.pwd_context.dummy_verify
    monkeypatch.setattr(security.pwd_context, "dummy_verify", lambda: seen.append(real_dummy_verify()))

    assert dummy_verify_password() is None
    assert len(seen) == 1


def test_verify_password_handles_unreadable_hash():
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_access_token_round_trip_returns_identity_claims():
    token = create_access_token(CLAIMS)
    assert verify_access_token(token) == CLAIMS


def test_refresh_token_round_trip_returns_identity_claims():
    token = create_refresh_token(CLAIMS)
    assert verify_refresh_token(token) == CLAIMS


def test_token_lifetimes():
    access = jwt.get_unverified_claims(create_access_token(CLAIMS))
    refresh = jwt.get_unverified_claims(create_refresh_token(CLAIMS))

    assert access["exp"] - access["iat"] == 60 * 60
    assert refresh["exp"] - refresh["iat"] == 7 * 24 * 60 * 60
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"


def test_expired_token_is_distinguished_from_invalid():
    expired = create_refresh_token(CLAIMS, expires_delta=timedelta(seconds=-10))
    with pytest.raises(TokenExpiredError):
        verify_refresh_token(expired)


def test_token_signed_with_other_secret_is_invalid():
    forged = issue_token(CLAIMS, "attacker-secret", timedelta(hours=1), "refresh")
    with pytest.raises(TokenInvalidError):
        verify_refresh_token(forged)


def test_access_token_cannot_be_used_as_refresh_token():
    with pytest.raises(TokenInvalidError):
        verify_refresh_token(create_access_token(CLAIMS))


def test_refresh_token_cannot_be_used_as_access_token():
    with pytest.raises(TokenInvalidError):
        verify_access_token(create_refresh_token(CLAIMS))


def test_type_claim_is_checked_even_with_the_right_secret():
    wrong_type = issue_token(CLAIMS, settings.jwt_refresh_secret, timedelta(hours=1), "access")
    with pytest.raises(TokenInvalidError):
        decode_token(wrong_type, settings.jwt_refresh_secret, "refresh")


def test_tampered_payload_is_invalid():
    header, _, signature = create_refresh_token(CLAIMS).split(".")
    other = create_refresh_token({"userId": 999, "email": "evil@x.com"})
    _, forged_payload, _ = other.split(".")

    with pytest.raises(TokenInvalidError):
        verify_refresh_token(f"{header}.{forged_payload}.{signature}")


def test_garbage_token_is_invalid():
    with pytest.raises(TokenInvalidError):
        verify_refresh_token("not.a.jwt")


def test_token_without_identity_claims_is_invalid():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"type": "refresh", "iat": now, "exp": now + timedelta(hours=1)},
        settings.jwt_refresh_secret,
        algorithm=settings.algorithm,
    )
    with pytest.raises(TokenInvalidError):
        verify_refresh_token(token)
