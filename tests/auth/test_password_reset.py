"""
Tests for the password recovery flow.
"""
import logging
from datetime import timedelta

import pytest

from vetclinic.auth import reset_tokens, service
from vetclinic.auth.models import IdentityKind, PasswordResetToken, utcnow
from vetclinic.config import settings

GENERIC_MESSAGE = service.FORGOT_PASSWORD_MESSAGE


@pytest.fixture
def sent_emails(monkeypatch):
    """
    Capture outgoing reset and confirmation emails.
    """
    sent = []
    monkeypatch.setattr(service, "send_password_reset_email",
                        lambda email, name, url, expires_at: sent.append(("reset", email, url)))
    monkeypatch.setattr(service, "send_password_changed_notification",
                        lambda email, name: sent.append(("changed", email, None)))
    return sent


def _tokens(db, email):
    return db.query(PasswordResetToken).filter(PasswordResetToken.email == email).all()


def test_forgot_password_staff(client, db, make_user, sent_emails):
    """
    Test that a staff user gets a token and a reset link.
    """
    make_user(email="vet@vet.com")
    response = client.post("/api/public/password/forgot-usuario", json={"email": "vet@vet.com"})

    assert response.status_code == 200
    assert response.json()["message"] == GENERIC_MESSAGE

    tokens = _tokens(db, "vet@vet.com")
    assert len(tokens) == 1
    assert tokens[0].user_type == IdentityKind.USER
    assert sent_emails == [("reset", "vet@vet.com", f"http://localhost:5173/reset-password?token={tokens[0].token}&type=usuario")]


def test_forgot_password_owner_link(client, db, make_owner, sent_emails):
    """
    Test that owners get a client portal reset link.
    """
    make_owner(email="ana@mail.com")
    client.post("/api/public/password/forgot-cliente", json={"email": "ana@mail.com"})

    token = _tokens(db, "ana@mail.com")[0]
    assert token.user_type == IdentityKind.OWNER
    assert sent_emails[0][2] == f"http://localhost:5173/cliente/reset-password?token={token.token}"


@pytest.mark.parametrize("path", ["/api/public/password/forgot-usuario", "/api/public/password/forgot-cliente"])
def test_forgot_password_unknown_email(client, db, path, sent_emails):
    """
    Test that unknown emails get the same answer and no token.
    """
    response = client.post(path, json={"email": "ghost@vet.com"})

    assert response.status_code == 200
    assert response.json()["message"] == GENERIC_MESSAGE
    assert _tokens(db, "ghost@vet.com") == []
    assert sent_emails == []


def test_forgot_password_skips_inactive_and_passwordless(client, db, make_user, make_owner, sent_emails):
    """
    Test that inactive users and owners without password get no token.
    """
    make_user(email="old@vet.com", is_active=False)
    make_owner(email="walkin@mail.com", password=None)

    assert client.post("/api/public/password/forgot-usuario", json={"email": "old@vet.com"}).json()["message"] == GENERIC_MESSAGE
    assert client.post("/api/public/password/forgot-cliente", json={"email": "walkin@mail.com"}).json()["message"] == GENERIC_MESSAGE

    assert _tokens(db, "old@vet.com") == []
    assert _tokens(db, "walkin@mail.com") == []


def test_new_request_invalidates_previous_token(client, db, make_user, sent_emails):
    """
    Test that only the latest reset link works.
    """
    make_user(email="vet@vet.com")
    client.post("/api/public/password/forgot-usuario", json={"email": "vet@vet.com"})
    client.post("/api/public/password/forgot-usuario", json={"email": "vet@vet.com"})

    tokens = sorted(_tokens(db, "vet@vet.com"), key=lambda t: t.id)
    assert [t.usado for t in tokens] == [True, False]


def test_reset_password(client, db, make_user, sent_emails):
    """
    Test the full reset: new password works, old one does not, token is used.
    """
    make_user(email="vet@vet.com", password="Oldpass2023")
    token = reset_tokens.issue(db, "vet@vet.com", IdentityKind.USER)

    response = client.post("/api/public/password/reset", json={"token": token.token, "password": "Newpass2024"})
    assert response.status_code == 200

    login = client.post("/api/auth/login", json={"email": "vet@vet.com", "password": "Newpass2024"})
    assert login.status_code == 200
    assert client.post("/api/auth/login", json={"email": "vet@vet.com", "password": "Oldpass2023"}).status_code == 401

    assert reset_tokens.find_by_token(db, token.token).usado is True
    assert ("changed", "vet@vet.com", None) in sent_emails


def test_reset_password_for_owner(client, db, make_owner, sent_emails):
    """
    Test that owner tokens update the owner record.
    """
    make_owner(email="ana@mail.com", password="Cliente2023")
    token = reset_tokens.issue(db, "ana@mail.com", IdentityKind.OWNER)

    assert client.post("/api/public/password/reset", json={"token": token.token, "password": "Cliente2024"}).status_code == 200
    login = client.post("/api/public/clientes/auth/login", json={"email": "ana@mail.com", "password": "Cliente2024"})
    assert login.status_code == 200


def test_reset_token_cannot_be_reused(client, db, make_user, sent_emails, caplog):
    """
    Test that a used token is rejected and reported as a security event.
    """
    make_user(email="vet@vet.com")
    token = reset_tokens.issue(db, "vet@vet.com", IdentityKind.USER)
    value = token.token

    assert client.post("/api/public/password/reset", json={"token": value, "password": "Newpass2024"}).status_code == 200

    with caplog.at_level(logging.INFO, logger="vetclinic.audit"):
        response = client.post("/api/public/password/reset", json={"token": value, "password": "Other2024pass"})

    assert response.status_code == 400
    assert response.json()["detail"] == service.INVALID_RESET_TOKEN_MESSAGE
    assert any(getattr(record, "action", None) == "SECURITY_EVENT" for record in caplog.records)


def test_expired_reset_token_rejected(client, db, make_user, sent_emails):
    """
    Test that a token past its expiry cannot reset the password.
    """
    make_user(email="vet@vet.com")
    token = reset_tokens.issue(db, "vet@vet.com", IdentityKind.USER, now=utcnow() - timedelta(hours=25))

    response = client.post("/api/public/password/reset", json={"token": token.token, "password": "Newpass2024"})
    assert response.status_code == 400


def test_unknown_reset_token_rejected(client):
    """
    Test that made-up tokens are rejected.
    """
    response = client.post("/api/public/password/reset", json={"token": "made-up", "password": "Newpass2024"})
    assert response.status_code == 400


def test_weak_password_keeps_token(client, db, make_user, sent_emails):
    """
    Test that a weak password is refused without consuming the token.
    """
    make_user(email="vet@vet.com")
    token = reset_tokens.issue(db, "vet@vet.com", IdentityKind.USER)

    response = client.post("/api/public/password/reset", json={"token": token.token, "password": "weak"})
    assert response.status_code == 400
    assert "password" in response.json()["detail"]
    assert reset_tokens.find_by_token(db, token.token).usado is False


def test_validate_reset_token(client, db, make_user):
    """
    Test the reset token inspection endpoint.
    """
    make_user(email="vet@vet.com")
    token = reset_tokens.issue(db, "vet@vet.com", IdentityKind.USER)

    data = client.get("/api/public/password/validate-token", params={"token": token.token}).json()
    assert data["valid"] is True
    assert data["expires_in_hours"] in (23, 24)
    assert data["expires_at"] is not None

    data = client.get("/api/public/password/validate-token", params={"token": "made-up"}).json()
    assert data == {"valid": False, "expires_at": None, "expires_in_hours": 0}


def test_forgot_password_miss_is_delayed(client, db, make_user, sent_emails, monkeypatch):
    """
    Test that only requests issuing no token pause for the configured delay.
    """
    pauses = []
    monkeypatch.setattr(settings, "password_reset_miss_delay_ms", 500)
    monkeypatch.setattr(service.time, "sleep", pauses.append)
    make_user(email="vet@clinic.com")

    client.post("/api/public/password/forgot-usuario", json={"email": "vet@clinic.com"})
    assert pauses == []

    client.post("/api/public/password/forgot-usuario", json={"email": "ghost@vet.com"})
    assert pauses == [0.5]
