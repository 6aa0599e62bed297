"""
Authentication service layer.

Login and token validation for staff users and owner-clients, plus the
password recovery flow. The HTTP routes only pick the credential source
and translate results; all decisions are made here.
"""
import logging
import math
import time
from typing import Any, Dict

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from ..config import settings
from ..core.audit import AuditLogger
from ..core.security import (
    create_access_token,
    decode_token,
    hash_password,
    validate_password_strength,
    validate_token as token_matches,
)
from ..exceptions import AppException, BusinessException, InvalidDataException, NotFoundException
from . import reset_tokens
from .credentials import CredentialSource, Identity, authenticate, get_credential_source
from .exceptions import AuthException, InvalidCredentialsException
from .models import IdentityKind, utcnow
from .utils import send_password_changed_notification, send_password_reset_email

# Set up logging
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the email is registered, you will receive password reset instructions"
RESET_SUCCESS_MESSAGE = "Password has been reset successfully"
INVALID_RESET_TOKEN_MESSAGE = "Invalid or expired reset token"

RESET_PATHS = {
    IdentityKind.USER: "/reset-password?token={token}&type=usuario",
    IdentityKind.OWNER: "/cliente/reset-password?token={token}",
}


def login(
    db: Session,
    source: CredentialSource,
    email: str,
    password: str,
    audit: AuditLogger,
    client_ip: str
) -> Dict[str, Any]:
    """
    Authenticate an email/password pair and issue an access token.

    Unknown emails and wrong passwords fail with the same message so callers
    cannot probe which accounts exist.

    Args:
        db: Database session
        source: Credential source for the login context
        email: Login email
        password: Plain text password
        audit: Audit logger of the current request
        client_ip: Caller IP for the audit trail

    Returns:
        Dict with the token, its type and the identity

    Raises:
        InvalidCredentialsException: Unknown email or wrong password
        InactiveAccountException: The account is deactivated
        NoCredentialsException: Owner without a registered password
    """
    try:
        identity = authenticate(db, source, email, password)
    except NotFoundException:
        audit.log_login_failure(email, client_ip, "unknown email")
        raise InvalidCredentialsException()
    except AuthException as e:
        audit.log_login_failure(email, client_ip, e.detail)
        raise

    token = create_access_token(
        identity.email,
        extra_claims={"role": identity.role.value, "id": identity.id},
    )
    audit.log_login_success(identity.email, client_ip)
    logger.info(f"{identity.kind.value} {identity.email} logged in")

    return {"token": token, "type": "Bearer", "identity": identity}


def validate_access_token(db: Session, source: CredentialSource, token: str) -> bool:
    """
    Check a token against a credential source.

    Never raises: malformed tokens, unknown subjects, inactive accounts and
    expired tokens all yield False.
    """
    try:
        payload = decode_token(token)
        identity = source.load_by_email(db, payload.subject)
        return token_matches(token, identity.email)
    except AppException as e:
        logger.debug(f"Token rejected by {source.resource_name} source: {e.detail}")
        return False


def logout(identity: Identity, audit: AuditLogger) -> Dict[str, str]:
    """
    Record a logout. Tokens are stateless, so nothing is revoked and the
    client is expected to discard its token.
    """
    audit.log_logout(identity.email)
    return {"message": "Logged out successfully"}


def _reset_url(kind: IdentityKind, token_value: str) -> str:
    return settings.frontend_url.rstrip("/") + RESET_PATHS[kind].format(token=token_value)


def request_password_reset(
    db: Session,
    kind: IdentityKind,
    email: str,
    background_tasks: BackgroundTasks,
    audit: AuditLogger
) -> Dict[str, str]:
    """
    Start password recovery for an email.

    The response is the same whether or not the account exists. A token is
    issued, and previous ones invalidated, only for active accounts (and,
    for owners, accounts that already have a password).
    """
    source = get_credential_source(kind)
    try:
        identity = source.load_by_email(db, email)
    except (NotFoundException, AuthException) as e:
        logger.info(f"Password reset not issued for {email}: {e.detail}")
        audit.log_custom_event("PASSWORD_RESET_SKIPPED", f"email={email}")
        time.sleep(settings.password_reset_miss_delay_ms / 1000)
        return {"message": FORGOT_PASSWORD_MESSAGE}

    reset_tokens.invalidate_previous(db, identity.email, kind)
    reset_token = reset_tokens.issue(db, identity.email, kind)

    background_tasks.add_task(
        send_password_reset_email,
        identity.email,
        identity.name,
        _reset_url(kind, reset_token.token),
        reset_token.expires_at,
    )
    audit.log_custom_event("PASSWORD_RESET_REQUESTED", f"email={identity.email} kind={kind.value}")

    return {"message": FORGOT_PASSWORD_MESSAGE}


def reset_password(
    db: Session,
    token_value: str,
    new_password: str,
    background_tasks: BackgroundTasks,
    audit: AuditLogger
) -> Dict[str, str]:
    """
    Set a new password using a reset token.

    Raises:
        BusinessException: Unknown, used or expired token
        InvalidDataException: The password is too weak
    """
    reset_token = reset_tokens.find_by_token(db, token_value)
    if reset_token is None or not reset_token.is_valid(utcnow()):
        audit.log_security_event("INVALID_RESET_TOKEN", "Password reset attempted with an invalid token")
        raise BusinessException(INVALID_RESET_TOKEN_MESSAGE)

    errors = validate_password_strength(new_password)
    if errors:
        raise InvalidDataException("password", "; ".join(errors))

    source = get_credential_source(reset_token.user_type)
    identity = source.set_password(db, reset_token.email, hash_password(new_password))
    reset_tokens.consume(db, reset_token.id)

    background_tasks.add_task(send_password_changed_notification, identity.email, identity.name)
    audit.log_custom_event("PASSWORD_RESET_COMPLETED", f"email={identity.email} kind={identity.kind.value}")
    logger.info(f"Password reset completed for {identity.email}")

    return {"message": RESET_SUCCESS_MESSAGE}


def get_reset_token_info(db: Session, token_value: str) -> Dict[str, Any]:
    """
    Describe a reset token for the frontend before the new password form is
    shown. Invalid tokens are reported as such, never as errors.
    """
    now = utcnow()
    reset_token = reset_tokens.find_by_token(db, token_value)
    if reset_token is None or not reset_token.is_valid(now):
        return {"valid": False, "expires_at": None, "expires_in_hours": 0}

    remaining_hours = (reset_token.expires_at - now).total_seconds() / 3600
    return {
        "valid": True,
        "expires_at": reset_token.expires_at,
        "expires_in_hours": max(0, math.floor(remaining_hours)),
    }
