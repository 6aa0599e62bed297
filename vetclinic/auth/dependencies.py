"""
FastAPI dependencies for authentication and authorization.

The authentication gate has already attached the identity (if any) to the
request context; these dependencies only decide whether that identity may
reach a route.
"""
import logging

from fastapi import Depends

from ..core.context import RequestContext, get_request_context
from ..core.permissions import Permission, Role, validate_permissions
from .credentials import Identity
from .exceptions import NotAuthenticatedException, PermissionDeniedException, RoleDeniedException

# Set up logging
logger = logging.getLogger(__name__)


def get_current_identity(context: RequestContext = Depends(get_request_context)) -> Identity:
    """
    Get the authenticated identity of the current request.

    Raises:
        NotAuthenticatedException: If the caller is anonymous
    """
    if context.identity is None:
        raise NotAuthenticatedException()
    return context.identity


def require_roles(*allowed_roles: Role):
    """
    Dependency factory to require one of the given roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that checks the current identity's role
    """
    def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed_roles:
            logger.warning(f"Role {identity.role.value} denied for {identity.email}")
            raise RoleDeniedException([role.value for role in allowed_roles], identity.role.value)
        return identity
    return role_checker


def require_permissions(*required_permissions: Permission):
    """
    Dependency factory to require every given permission.
    """
    def permission_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not validate_permissions(identity.role, list(required_permissions)):
            missing = [p.value for p in required_permissions if p not in identity.permissions]
            logger.warning(f"Permissions {missing} missing for {identity.email}")
            raise PermissionDeniedException(f"Missing permissions: {missing}")
        return identity
    return permission_checker


require_admin = require_roles(Role.ADMIN)
