"""
User Service - Business logic for staff user administration.

Every change is recorded in the audit trail of the request that made it.
"""
import csv
import io
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ..auth.credentials import Identity
from ..auth.models import User
from ..core.audit import AuditLogger
from ..core.permissions import Role
from ..core.security import hash_password, validate_password_strength
from ..exceptions import BusinessException, DuplicateResourceException, InvalidDataException, NotFoundException
from .schemas import UserCreate, UserUpdate

# Set up logging
logger = logging.getLogger(__name__)

ENTITY = "User"
EXPORT_COLUMNS = ["id", "name", "email", "role", "is_active", "created_at"]


def _snapshot(user: User) -> Dict[str, Any]:
    """Audit view of a user; the password hash never leaves the database."""
    return {
        "name": user.name,
        "email": user.email,
        "role": Role(user.role).value,
        "is_active": user.is_active,
    }


def _ensure_email_free(db: Session, email: str, exclude_id: int = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise DuplicateResourceException(ENTITY, "email", email)


def _ensure_staff_role(role: Role) -> None:
    if not Role(role).is_staff:
        raise InvalidDataException("role", f"{Role(role).value} is not a staff role")


def _ensure_not_self(user: User, actor: Identity, action: str) -> None:
    if user.id == actor.id:
        raise BusinessException(f"Administrators cannot {action} their own account")


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def get_user(db: Session, user_id: int) -> User:
    """
    Get a staff user by ID.

    Raises:
        NotFoundException: If the user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundException(ENTITY, "id", user_id)
    return user


def view_user(db: Session, user_id: int, audit: AuditLogger) -> User:
    user = get_user(db, user_id)
    audit.log_access(ENTITY, user.id, "user detail viewed")
    return user


def create_user(db: Session, data: UserCreate, audit: AuditLogger) -> User:
    """
    Create a staff user.

    Raises:
        DuplicateResourceException: If the email is already registered
        InvalidDataException: Weak password or non-staff role
    """
    _ensure_staff_role(data.role)
    errors = validate_password_strength(data.password)
    if errors:
        raise InvalidDataException("password", "; ".join(errors))
    _ensure_email_free(db, data.email)

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    audit.log_create(ENTITY, user.id, data)
    logger.info(f"Staff user {user.email} created with role {user.role.value}")
    return user


def update_user(db: Session, user_id: int, data: UserUpdate, audit: AuditLogger) -> User:
    """
    Update profile fields of a staff user.

    Raises:
        NotFoundException: If the user does not exist
        DuplicateResourceException: If the new email belongs to another user
    """
    user = get_user(db, user_id)
    old_data = _snapshot(user)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes:
        _ensure_email_free(db, changes["email"], exclude_id=user.id)
    for field, value in changes.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    audit.log_update(ENTITY, user.id, old_data, _snapshot(user))
    return user


def change_role(db: Session, user_id: int, role: Role, actor: Identity, audit: AuditLogger) -> User:
    """
    Change the role of a staff user.

    Raises:
        NotFoundException: If the user does not exist
        InvalidDataException: If the role is not a staff role
        BusinessException: If an admin tries to change their own role
    """
    _ensure_staff_role(role)
    user = get_user(db, user_id)
    _ensure_not_self(user, actor, "change the role of")

    old_role = Role(user.role)
    user.role = role
    db.commit()
    db.refresh(user)

    audit.log_permission_change(user.email, "ROLE_CHANGE", f"{old_role.authority} -> {Role(role).authority}")
    return user


def change_status(db: Session, user_id: int, is_active: bool, actor: Identity, audit: AuditLogger) -> User:
    """
    Activate or deactivate a staff user. Deactivated users cannot log in and
    their outstanding tokens stop authenticating.
    """
    user = get_user(db, user_id)
    _ensure_not_self(user, actor, "change the status of")

    old_status = "ACTIVE" if user.is_active else "INACTIVE"
    user.is_active = is_active
    db.commit()
    db.refresh(user)

    audit.log_status_change(ENTITY, user.id, old_status, "ACTIVE" if is_active else "INACTIVE")
    return user


def delete_user(db: Session, user_id: int, actor: Identity, audit: AuditLogger) -> None:
    user = get_user(db, user_id)
    _ensure_not_self(user, actor, "delete")

    db.delete(user)
    db.commit()

    audit.log_delete(ENTITY, user_id)
    logger.info(f"Staff user {user_id} deleted by {actor.email}")


def export_users_csv(db: Session, audit: AuditLogger) -> str:
    """
    Export all staff users as CSV.

    Returns:
        str: CSV document with a header row
    """
    users = list_users(db)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for user in users:
        writer.writerow([
            user.id,
            user.name,
            user.email,
            Role(user.role).value,
            user.is_active,
            user.created_at.isoformat() if user.created_at else "",
        ])

    audit.log_data_export(ENTITY, len(users), "CSV")
    return buffer.getvalue()
