"""
Tests for SMTP delivery of recovery emails, against a fake SMTP server.
"""
import smtplib
from datetime import datetime

import pytest

from vetclinic.auth import utils
from vetclinic.config import settings


class FakeSMTP:
    """Records sent messages; fails the first `failures` connections."""
    instances = []
    failures = 0
    error = smtplib.SMTPServerDisconnected("connection dropped")

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.failures > 0:
            FakeSMTP.failures -= 1
            raise FakeSMTP.error
        self.host = host
        self.port = port
        self.sent = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self, context=None):
        pass

    def login(self, username, password):
        self.logged_in = username

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture
def smtp(monkeypatch):
    """
    Configure SMTP settings and replace the SMTP client.
    """
    FakeSMTP.instances = []
    FakeSMTP.failures = 0
    monkeypatch.setattr(settings, "mail_server", "smtp.clinic.com")
    monkeypatch.setattr(settings, "mail_username", "mailer")
    monkeypatch.setattr(settings, "mail_password", "app-password")
    monkeypatch.setattr(settings, "mail_from", "no-reply@clinic.com")
    monkeypatch.setattr(utils.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(utils, "RETRY_DELAY", 0)
    return FakeSMTP


def test_skipped_without_configuration(monkeypatch):
    """
    Test that nothing is sent when SMTP is not configured.
    """
    monkeypatch.setattr(settings, "mail_server", None)
    assert utils.email_configured() is False
    assert utils.send_email("vet@vet.com", "Subject", "<p>Hi</p>") is False


def test_reset_email_contains_link(smtp):
    """
    Test that the reset email carries the link and goes to the recipient.
    """
    url = "http://localhost:5173/reset-password?token=abc&type=usuario"
    assert utils.send_password_reset_email("vet@vet.com", "Ana", url, datetime(2024, 5, 11, 9, 0)) is True

    message = smtp.instances[0].sent[0]
    assert message["To"] == "vet@vet.com"
    assert message["From"] == "no-reply@clinic.com"
    assert url in message.get_payload()[0].get_payload()


def test_changed_notification(smtp):
    """
    Test that the password changed notification is sent.
    """
    assert utils.send_password_changed_notification("vet@vet.com", "Ana") is True
    assert smtp.instances[0].sent[0]["Subject"] == "Veterinary Clinic - Password Changed"


def test_retries_connection_errors(smtp):
    """
    Test that dropped connections are retried.
    """
    smtp.failures = 2
    smtp.error = smtplib.SMTPServerDisconnected("connection dropped")

    assert utils.send_email("vet@vet.com", "Subject", "<p>Hi</p>") is True
    assert len(smtp.instances) == 1


def test_gives_up_after_max_retries(smtp):
    """
    Test that delivery reports failure after the last attempt.
    """
    smtp.failures = utils.MAX_RETRIES
    smtp.error = smtplib.SMTPServerDisconnected("connection dropped")

    assert utils.send_email("vet@vet.com", "Subject", "<p>Hi</p>") is False
    assert smtp.instances == []


def test_authentication_errors_are_not_retried(smtp):
    """
    Test that bad credentials stop the retry loop at once.
    """
    smtp.failures = utils.MAX_RETRIES
    smtp.error = smtplib.SMTPAuthenticationError(535, b"bad credentials")

    assert utils.send_email("vet@vet.com", "Subject", "<p>Hi</p>") is False
    assert smtp.failures == utils.MAX_RETRIES - 1
