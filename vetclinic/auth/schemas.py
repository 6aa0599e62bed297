"""
Auth Schemas - Pydantic models for login, token validation and password recovery.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..core.permissions import Role
from .models import IdentityKind


class LoginRequest(BaseModel):
    """
    Login Schema - Used for authentication

    Fields:
    - email: Identity email address
    - password: Plain text password
    """
    email: EmailStr
    password: str = Field(..., min_length=1)


class IdentityResponse(BaseModel):
    """
    Identity returned after login and by /me. Never includes the password hash.
    """
    id: int
    name: str
    email: EmailStr
    role: Role
    kind: IdentityKind
    is_active: bool

    class Config:
        """Allow building the response from an Identity object"""
        from_attributes = True


class LoginResponse(BaseModel):
    """
    Login Response Schema

    Fields:
    - token: Signed access token
    - type: Always "Bearer"
    - identity: Authenticated staff user or owner
    """
    token: str
    type: str = "Bearer"
    identity: IdentityResponse


class ForgotPasswordRequest(BaseModel):
    """Request a password reset link for an email."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Set a new password using a reset token."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ResetTokenInfo(BaseModel):
    """Public view of a reset token, used by the frontend before showing the form."""
    valid: bool
    expires_at: Optional[datetime] = None
    expires_in_hours: int = 0


class MessageResponse(BaseModel):
    message: str
