"""
Schemas for staff user administration.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ..core.permissions import Role


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    """
    Staff user creation payload

    Fields:
    - name: Full name
    - email: Login email, unique among staff users
    - password: Initial password, must pass the strength rules
    - role: Staff role (CLIENT is not allowed)
    """
    password: str = Field(..., min_length=1)
    role: Role = Role.RECEPTION


class UserUpdate(BaseModel):
    """Profile fields an admin may change. Omitted fields are left as they are."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class RoleUpdate(BaseModel):
    role: Role


class StatusUpdate(BaseModel):
    is_active: bool


class UserResponse(UserBase):
    id: int
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        """Allow reading data from ORM objects"""
        from_attributes = True
