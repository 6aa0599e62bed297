"""
Core security utilities for authentication and password handling.

Access tokens are HS256-signed JWTs carrying the identity email as subject,
issue and expiry timestamps and a few extra claims (role, numeric id). They
are never stored: validity comes from the signature and the expiry alone.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, List
from jose import jwt, JWTError
from passlib.context import CryptContext
import hashlib
import re
import secrets
import logging

from ..config import settings
from ..auth.exceptions import InvalidTokenException

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Claims managed by the codec itself; everything else is an extra claim
_REGISTERED_CLAIMS = ("sub", "iat", "exp")

# HS256 wants a 256-bit key
_KEY_LENGTH = 32


@dataclass(frozen=True)
class TokenPayload:
    """Parsed content of a verified access token."""
    subject: str
    issued_at: datetime
    expires_at: datetime
    claims: Dict[str, Any] = field(default_factory=dict)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def _signing_key(secret: Optional[str] = None) -> bytes:
    """
    Derive the 32-byte HMAC key from the configured secret.

    Short secrets are stretched with SHA-256, long ones are cut to 32 bytes.
    """
    key = (secret if secret is not None else settings.secret_key).encode("utf-8")
    if len(key) < _KEY_LENGTH:
        return hashlib.sha256(key).digest()
    return key[:_KEY_LENGTH]

def _now() -> datetime:
    return datetime.now(timezone.utc)

def create_access_token(
    subject: str,
    extra_claims: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token.

    Args:
        subject: Identity email the token is issued for
        extra_claims: Additional claims such as role and id
        now: Issue time, defaults to the current UTC time
        expires_delta: Token lifetime, defaults to the configured 10 hours

    Returns:
        str: Encoded JWT token
    """
    issued_at = int((now or _now()).timestamp())
    lifetime = expires_delta or timedelta(hours=settings.access_token_expire_hours)

    to_encode = dict(extra_claims or {})
    to_encode.update({
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + int(lifetime.total_seconds()),
    })

    return jwt.encode(to_encode, _signing_key(), algorithm=settings.algorithm)

def decode_token(token: str) -> TokenPayload:
    """
    Verify the signature of a token and return its payload.

    Expiry is deliberately not enforced here; use is_token_expired or
    validate_token for that.

    Args:
        token: JWT token string

    Returns:
        TokenPayload: Subject, timestamps and extra claims

    Raises:
        InvalidTokenException: If the signature fails or the payload is malformed
    """
    try:
        payload = jwt.decode(
            token,
            _signing_key(),
            algorithms=[settings.algorithm],
            options={"verify_exp": False}
        )
    except JWTError as e:
        raise InvalidTokenException(f"Invalid token: {e}")

    subject = payload.get("sub")
    expiry = payload.get("exp")
    if not isinstance(subject, str) or not subject or not isinstance(expiry, (int, float)):
        raise InvalidTokenException("Invalid token payload")

    issued = payload.get("iat", expiry)
    if not isinstance(issued, (int, float)):
        raise InvalidTokenException("Invalid token payload")

    return TokenPayload(
        subject=subject,
        issued_at=datetime.fromtimestamp(issued, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expiry, tz=timezone.utc),
        claims={k: v for k, v in payload.items() if k not in _REGISTERED_CLAIMS},
    )

def is_token_expired(token: str, now: Optional[datetime] = None) -> bool:
    """
    Check whether a token is past its expiry.

    Raises:
        InvalidTokenException: If the token cannot be parsed
    """
    return decode_token(token).expires_at < (now or _now())

def validate_token(token: str, expected_subject: str, now: Optional[datetime] = None) -> bool:
    """
    Check that a token belongs to the expected subject and has not expired.

    Args:
        token: JWT token string
        expected_subject: Email of the identity the token should prove
        now: Reference time, defaults to the current UTC time

    Returns:
        bool: True if the subject matches and the token is not expired

    Raises:
        InvalidTokenException: If the token cannot be parsed
    """
    payload = decode_token(token)
    return payload.subject == expected_subject and not payload.expires_at < (now or _now())

def generate_secure_reset_token() -> str:
    """
    Generate a secure token for password reset.

    Returns:
        str: A 32-byte URL-safe token (43 characters)
    """
    return secrets.token_urlsafe(32)


def validate_password_strength(password: str) -> List[str]:
    """
    Validate password meets security requirements.

    Requirements:
    - At least 8 characters long
    - Contains lowercase letter
    - Contains number

    Args:
        password: The password to validate

    Returns:
        List[str]: Error messages, empty when the password is acceptable
    """
    errors = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")

    if not re.search(r'[a-z]', password):
        errors.append("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        errors.append("Password must contain at least one number")

    # Check for common weak passwords
    weak_passwords = ['password1', '12345678', 'qwerty123', 'admin123']
    if password.lower() in weak_passwords:
        errors.append("Password is too common, please choose a stronger password")

    return errors
