"""
Tests for the access token codec and password helpers.
"""
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from vetclinic.auth.exceptions import InvalidTokenException
from vetclinic.core.security import (
    _signing_key,
    create_access_token,
    decode_token,
    generate_secure_reset_token,
    hash_password,
    is_token_expired,
    validate_password_strength,
    validate_token,
    verify_password,
)

ISSUED = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
LIFETIME = timedelta(hours=10)


def test_token_carries_subject_and_claims():
    """
    Test that a token decodes to its subject, timestamps and extra claims.
    """
    token = create_access_token("admin@vet.com", extra_claims={"role": "ADMIN", "id": 1}, now=ISSUED)
    payload = decode_token(token)

    assert payload.subject == "admin@vet.com"
    assert payload.issued_at == ISSUED
    assert payload.expires_at == ISSUED + LIFETIME
    assert payload.claims == {"role": "ADMIN", "id": 1}


def test_validate_token_checks_subject():
    """
    Test that a token only validates for the email it was issued to.
    """
    token = create_access_token("vet@clinic.com", now=ISSUED)
    now = ISSUED + timedelta(minutes=5)

    assert validate_token(token, "vet@clinic.com", now=now) is True
    assert validate_token(token, "other@clinic.com", now=now) is False


def test_expiry_boundary():
    """
    Test that a token is valid one second before expiry and rejected one second after.
    """
    token = create_access_token("vet@clinic.com", now=ISSUED)
    expiry = ISSUED + LIFETIME

    assert is_token_expired(token, now=expiry - timedelta(seconds=1)) is False
    assert validate_token(token, "vet@clinic.com", now=expiry - timedelta(seconds=1)) is True
    assert is_token_expired(token, now=expiry + timedelta(seconds=1)) is True
    assert validate_token(token, "vet@clinic.com", now=expiry + timedelta(seconds=1)) is False


def test_decode_does_not_enforce_expiry():
    """
    Test that an expired token still decodes so callers can inspect it.
    """
    token = create_access_token("vet@clinic.com", now=ISSUED - timedelta(days=30))
    assert decode_token(token).subject == "vet@clinic.com"
    assert is_token_expired(token) is True


def test_tampered_token_is_rejected():
    """
    Test that changing the signature invalidates the token.
    """
    token = create_access_token("vet@clinic.com")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidTokenException):
        decode_token(tampered)


def test_token_signed_with_other_key_is_rejected():
    """
    Test that tokens from another key are not accepted.
    """
    foreign = jwt.encode(
        {"sub": "vet@clinic.com", "iat": 1, "exp": 9999999999},
        _signing_key("a-completely-different-secret-key-0000"),
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenException):
        decode_token(foreign)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_is_rejected(token):
    """
    Test that malformed input raises the invalid token error.
    """
    with pytest.raises(InvalidTokenException):
        decode_token(token)


def test_token_without_subject_is_rejected():
    """
    Test that a correctly signed token without a subject is refused.
    """
    token = jwt.encode({"iat": 1, "exp": 9999999999}, _signing_key(), algorithm="HS256")
    with pytest.raises(InvalidTokenException):
        decode_token(token)


def test_signing_key_is_32_bytes():
    """
    Test that short secrets are stretched and long secrets cut to 32 bytes.
    """
    assert len(_signing_key("short")) == 32
    long_secret = "x" * 64
    assert _signing_key(long_secret) == b"x" * 32


def test_password_hashing():
    """
    Test that hashes verify the original password only.
    """
    hashed = hash_password("Clinic2024pass")
    assert hashed != "Clinic2024pass"
    assert verify_password("Clinic2024pass", hashed) is True
    assert verify_password("wrong-password1", hashed) is False


def test_verify_password_without_hash():
    """
    Test that a missing hash never verifies.
    """
    assert verify_password("anything1", None) is False
    assert verify_password("anything1", "") is False


def test_reset_tokens_are_unique():
    """
    Test that generated reset tokens are long and distinct.
    """
    tokens = {generate_secure_reset_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(token) >= 43 for token in tokens)


@pytest.mark.parametrize("password,expected_errors", [
    ("Clinic2024pass", 0),
    ("short1", 1),
    ("NOLOWERCASE1", 1),
    ("nodigitshere", 1),
    ("password1", 1),
])
def test_password_strength(password, expected_errors):
    """
    Test the password strength rules.
    """
    assert len(validate_password_strength(password)) == expected_errors
