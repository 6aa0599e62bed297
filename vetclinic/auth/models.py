"""
Identity and credential models.

- User: clinic staff (table ``usuarios``)
- Owner: pet owners who may log into the client portal (table ``propietarios``)
- PasswordResetToken: single-use password recovery tokens
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Index

from ..database import Base
from ..core.permissions import Role


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class IdentityKind(str, enum.Enum):
    """
    Which table an identity lives in. Values are persisted on reset tokens.
    """
    USER = "USUARIO"
    OWNER = "PROPIETARIO"


class User(Base):
    """
    User Model - Clinic staff able to log into the back office

    Fields:
    - id: Primary key for user identification
    - name: User's complete name
    - email: Unique email address used as login
    - password_hash: Securely hashed password (never store raw passwords)
    - role: One of ADMIN, VET, RECEPTION, STUDENT
    - is_active: Inactive users cannot authenticate even with a correct password
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.RECEPTION)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Owner(Base):
    """
    Owner Model - Pet owner, optionally registered for the client portal

    Owners created at the front desk may have no password; they cannot log in
    until one is set.
    """
    __tablename__ = "propietarios"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    document = Column(String(20), nullable=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)

    def __repr__(self):
        return f"<Owner(id={self.id}, email='{self.email}')>"


class PasswordResetToken(Base):
    """
    Password recovery token.

    A token is valid while it is unused and the current time is before
    expires_at. Expired or used rows are eligible for purging.
    """
    __tablename__ = "password_reset_tokens"
    __table_args__ = (
        Index("idx_token_email", "email"),
        Index("idx_token_expires_at", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(255), unique=True, nullable=False)
    email = Column(String(100), nullable=False)
    user_type = Column(Enum(IdentityKind, values_callable=lambda kinds: [k.value for k in kinds]), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    usado = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def is_expired(self, now: datetime = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def is_valid(self, now: datetime = None) -> bool:
        return not self.usado and not self.is_expired(now)

    def __repr__(self):
        return f"<PasswordResetToken(id={self.id}, email='{self.email}', user_type='{self.user_type}', usado={self.usado})>"
