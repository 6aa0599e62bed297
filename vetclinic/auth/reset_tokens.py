"""
Password reset token store.

Tokens go ISSUED -> USED through consume(). Expiry is not a transition: a
token past expires_at simply stops matching the validity queries. Purging is
housekeeping only and never affects which tokens are valid.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.security import generate_secure_reset_token
from ..exceptions import DuplicateResourceException
from .models import IdentityKind, PasswordResetToken, utcnow

# Set up logging
logger = logging.getLogger(__name__)


def issue(
    db: Session,
    email: str,
    kind: IdentityKind,
    now: Optional[datetime] = None,
    token_value: Optional[str] = None
) -> PasswordResetToken:
    """
    Create a new unused reset token for an email.

    Args:
        db: Database session
        email: Email of the identity requesting recovery
        kind: Identity kind the token is for
        now: Issue time (naive UTC), defaults to the current time
        token_value: Explicit token value, generated when omitted

    Returns:
        PasswordResetToken: The persisted token

    Raises:
        DuplicateResourceException: If the token value already exists
    """
    now = now or utcnow()
    kind = IdentityKind(kind)
    reset_token = PasswordResetToken(
        token=token_value or generate_secure_reset_token(),
        email=email,
        user_type=kind,
        expires_at=now + timedelta(hours=settings.password_reset_expire_hours),
        usado=False,
        created_at=now,
    )
    db.add(reset_token)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.error(f"Reset token collision while issuing token for {email}")
        raise DuplicateResourceException("PasswordResetToken", "token")
    db.refresh(reset_token)
    logger.info(f"Password reset token issued for {kind.value.lower()} {email}")
    return reset_token


def find_valid(db: Session, email: str, kind: IdentityKind, now: Optional[datetime] = None) -> Optional[PasswordResetToken]:
    """
    Newest unused, unexpired token for an email and identity kind.
    """
    now = now or utcnow()
    return (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.email == email,
            PasswordResetToken.user_type == IdentityKind(kind),
            PasswordResetToken.usado.is_(False),
            PasswordResetToken.expires_at > now,
        )
        .order_by(PasswordResetToken.created_at.desc(), PasswordResetToken.id.desc())
        .first()
    )


def find_by_token(db: Session, token_value: str) -> Optional[PasswordResetToken]:
    return db.query(PasswordResetToken).filter(PasswordResetToken.token == token_value).first()


def consume(db: Session, token_id: int) -> None:
    """
    Mark a token as used. Consuming an already used token changes nothing.
    """
    db.query(PasswordResetToken).filter(PasswordResetToken.id == token_id).update(
        {PasswordResetToken.usado: True}, synchronize_session="fetch"
    )
    db.commit()


def invalidate_previous(db: Session, email: str, kind: IdentityKind, now: Optional[datetime] = None) -> int:
    """
    Consume every outstanding valid token of an email, before a new one is issued.

    Returns:
        int: Number of tokens invalidated
    """
    now = now or utcnow()
    count = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.email == email,
            PasswordResetToken.user_type == IdentityKind(kind),
            PasswordResetToken.usado.is_(False),
            PasswordResetToken.expires_at > now,
        )
        .update({PasswordResetToken.usado: True}, synchronize_session="fetch")
    )
    db.commit()
    if count:
        logger.debug(f"{count} previous reset token(s) invalidated for {email}")
    return count


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    """
    Delete tokens that are expired or already used.

    Returns:
        int: Number of tokens deleted
    """
    now = now or utcnow()
    deleted = (
        db.query(PasswordResetToken)
        .filter(or_(PasswordResetToken.expires_at < now, PasswordResetToken.usado.is_(True)))
        .delete(synchronize_session="fetch")
    )
    db.commit()
    logger.info(f"{deleted} expired or used reset tokens purged")
    return deleted
