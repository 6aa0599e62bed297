"""
Staff user administration routes. Admin only.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.credentials import Identity
from ..auth.dependencies import require_admin, require_permissions
from ..core.audit import AuditLogger, get_audit_logger
from ..core.permissions import Permission
from ..database import get_db
from . import service
from .schemas import RoleUpdate, StatusUpdate, UserCreate, UserResponse, UserUpdate

router = APIRouter(
    prefix="/api/usuarios",
    tags=["Users"],
    dependencies=[Depends(require_permissions(Permission.MANAGE_USERS))],
)


@router.get("", response_model=List[UserResponse], summary="List staff users")
def list_users_route(db: Session = Depends(get_db)):
    return service.list_users(db)


@router.get("/export", summary="Export staff users as CSV")
def export_users_route(
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    identity: Identity = Depends(require_permissions(Permission.EXPORT_DATA))
):
    content = service.export_users_csv(db, audit)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=usuarios.csv"},
    )


@router.get("/{user_id}", response_model=UserResponse, summary="Get a staff user")
def get_user_route(
    user_id: int,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    return service.view_user(db, user_id, audit)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create a staff user")
def create_user_route(
    data: UserCreate,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Create a staff user.

    Raises:
        400: Weak password or non-staff role
        409: Email already registered
    """
    return service.create_user(db, data, audit)


@router.put("/{user_id}", response_model=UserResponse, summary="Update a staff user")
def update_user_route(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    return service.update_user(db, user_id, data, audit)


@router.patch("/{user_id}/role", response_model=UserResponse, summary="Change the role of a staff user")
def change_role_route(
    user_id: int,
    data: RoleUpdate,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    admin: Identity = Depends(require_admin)
):
    return service.change_role(db, user_id, data.role, admin, audit)


@router.patch("/{user_id}/status", response_model=UserResponse, summary="Activate or deactivate a staff user")
def change_status_route(
    user_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    admin: Identity = Depends(require_admin)
):
    return service.change_status(db, user_id, data.is_active, admin, audit)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a staff user")
def delete_user_route(
    user_id: int,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger),
    admin: Identity = Depends(require_admin)
):
    service.delete_user(db, user_id, admin, audit)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
