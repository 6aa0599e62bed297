"""
Authentication routes for the veterinary clinic system.

- /api/auth: back office login for staff users
- /api/public/clientes/auth: client portal login for pet owners
- /api/public/password: password recovery for both
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.audit import AuditLogger, get_audit_logger
from ..core.context import RequestContext, get_request_context
from ..database import get_db
from . import service
from .credentials import Identity, owner_credentials, staff_credentials
from .dependencies import get_current_identity
from .models import IdentityKind
from .schemas import (
    ForgotPasswordRequest,
    IdentityResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    ResetTokenInfo,
)

# Set up logging
logger = logging.getLogger(__name__)

# Create API routers
router = APIRouter(prefix="/api/auth", tags=["Authentication"])
client_router = APIRouter(prefix="/api/public/clientes/auth", tags=["Client Authentication"])
password_router = APIRouter(prefix="/api/public/password", tags=["Password Recovery"])


# ============================================================================
# STAFF AUTHENTICATION
# ============================================================================

@router.post("/login", response_model=LoginResponse, summary="Staff login")
def login_route(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Authenticate a staff user and return a Bearer token valid for 10 hours.

    Raises:
        401: Unknown email, wrong password or inactive account
    """
    return service.login(db, staff_credentials, credentials.email, credentials.password, audit, context.client_ip)


@router.get("/validate", response_model=bool, summary="Validate a staff token")
def validate_route(token: str = Query(...), db: Session = Depends(get_db)):
    """
    Return true when the token is well formed, unexpired and belongs to an
    active staff user.
    """
    return service.validate_access_token(db, staff_credentials, token)


@router.get("/me", response_model=IdentityResponse, summary="Current identity")
def me_route(identity: Identity = Depends(get_current_identity)):
    return identity


@router.post("/logout", response_model=MessageResponse, summary="Logout")
def logout_route(
    identity: Identity = Depends(get_current_identity),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Record the logout in the audit trail. Access tokens are stateless, so the
    client must discard its token; it stays valid until it expires.
    """
    return service.logout(identity, audit)


# ============================================================================
# CLIENT PORTAL AUTHENTICATION
# ============================================================================

@client_router.post("/login", response_model=LoginResponse, summary="Owner login")
def client_login_route(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    context: RequestContext = Depends(get_request_context),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Authenticate a pet owner for the client portal.

    Raises:
        401: Unknown email, wrong password, inactive account or no password registered
    """
    return service.login(db, owner_credentials, credentials.email, credentials.password, audit, context.client_ip)


@client_router.get("/validate", response_model=bool, summary="Validate an owner token")
def client_validate_route(token: str = Query(...), db: Session = Depends(get_db)):
    return service.validate_access_token(db, owner_credentials, token)


# ============================================================================
# PASSWORD RECOVERY
# ============================================================================

@password_router.post("/forgot-usuario", response_model=MessageResponse, summary="Staff password recovery")
def forgot_password_staff_route(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Email a reset link to a staff user. The response never reveals whether
    the email is registered.
    """
    return service.request_password_reset(db, IdentityKind.USER, data.email, background_tasks, audit)


@password_router.post("/forgot-cliente", response_model=MessageResponse, summary="Owner password recovery")
def forgot_password_client_route(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Email a reset link to a pet owner. The response never reveals whether
    the email is registered.
    """
    return service.request_password_reset(db, IdentityKind.OWNER, data.email, background_tasks, audit)


@password_router.post("/reset", response_model=MessageResponse, status_code=status.HTTP_200_OK, summary="Reset password")
def reset_password_route(
    data: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    audit: AuditLogger = Depends(get_audit_logger)
):
    """
    Set a new password with a reset token. The token is single use.

    Raises:
        400: Invalid, used or expired token, or a weak password
    """
    return service.reset_password(db, data.token, data.password, background_tasks, audit)


@password_router.get("/validate-token", response_model=ResetTokenInfo, summary="Inspect a reset token")
def validate_reset_token_route(token: str = Query(...), db: Session = Depends(get_db)):
    return service.get_reset_token_info(db, token)
