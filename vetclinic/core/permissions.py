"""
Core permissions utilities for role-based access control.

Roles form a closed set. Every role has an entry in ROLE_PERMISSIONS, so
looking up the permissions of any Role never falls through to a default.
"""
import enum
from typing import Dict, FrozenSet, List, Set


class Role(str, enum.Enum):
    """
    Roles known to the clinic system.

    Roles:
    - ADMIN: Clinic administrators with full access
    - VET: Veterinarians who run consultations and prescribe
    - RECEPTION: Front desk staff managing owners, patients and agenda
    - STUDENT: Trainees with read access to clinical records
    - CLIENT: Pet owners using the client portal (never a staff role)
    """
    ADMIN = "ADMIN"
    VET = "VET"
    RECEPTION = "RECEPTION"
    STUDENT = "STUDENT"
    CLIENT = "CLIENT"

    @property
    def authority(self) -> str:
        """Authority string carried by authenticated identities, e.g. ROLE_VET."""
        return f"ROLE_{self.value}"

    @property
    def is_staff(self) -> bool:
        return self in STAFF_ROLES


STAFF_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.VET, Role.RECEPTION, Role.STUDENT})


class Permission(str, enum.Enum):
    """
    Permission types for role-based access control.
    """
    # Patient and owner records
    VIEW_PATIENTS = "view_patients"
    MANAGE_PATIENTS = "manage_patients"
    VIEW_OWNERS = "view_owners"
    MANAGE_OWNERS = "manage_owners"

    # Agenda
    VIEW_APPOINTMENTS = "view_appointments"
    MANAGE_APPOINTMENTS = "manage_appointments"

    # Clinical work
    VIEW_CONSULTATIONS = "view_consultations"
    MANAGE_CONSULTATIONS = "manage_consultations"
    MANAGE_PRESCRIPTIONS = "manage_prescriptions"

    # Billing and stock
    MANAGE_INVOICES = "manage_invoices"
    MANAGE_INVENTORY = "manage_inventory"

    # Administration
    MANAGE_USERS = "manage_users"
    EXPORT_DATA = "export_data"
    VIEW_LOGS = "view_logs"

    # Client portal
    VIEW_OWN_PETS = "view_own_pets"
    REQUEST_APPOINTMENT = "request_appointment"


# Role-based permission mapping
ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    # Admin has all permissions except the client portal ones
    Role.ADMIN: frozenset(
        p for p in Permission
        if p not in (Permission.VIEW_OWN_PETS, Permission.REQUEST_APPOINTMENT)
    ),
    Role.VET: frozenset({
        Permission.VIEW_PATIENTS,
        Permission.MANAGE_PATIENTS,
        Permission.VIEW_OWNERS,
        Permission.VIEW_APPOINTMENTS,
        Permission.MANAGE_APPOINTMENTS,
        Permission.VIEW_CONSULTATIONS,
        Permission.MANAGE_CONSULTATIONS,
        Permission.MANAGE_PRESCRIPTIONS,
        Permission.MANAGE_INVENTORY,
    }),
    Role.RECEPTION: frozenset({
        Permission.VIEW_PATIENTS,
        Permission.MANAGE_PATIENTS,
        Permission.VIEW_OWNERS,
        Permission.MANAGE_OWNERS,
        Permission.VIEW_APPOINTMENTS,
        Permission.MANAGE_APPOINTMENTS,
        Permission.MANAGE_INVOICES,
    }),
    Role.STUDENT: frozenset({
        Permission.VIEW_PATIENTS,
        Permission.VIEW_OWNERS,
        Permission.VIEW_APPOINTMENTS,
        Permission.VIEW_CONSULTATIONS,
    }),
    Role.CLIENT: frozenset({
        Permission.VIEW_OWN_PETS,
        Permission.REQUEST_APPOINTMENT,
    }),
}


def get_permissions_for_role(role: Role) -> Set[Permission]:
    """
    Get permissions for a specific role.

    Args:
        role: Clinic role

    Returns:
        Set[Permission]: Set of permissions for the role
    """
    return set(ROLE_PERMISSIONS[Role(role)])


def has_permission(role: Role, permission: Permission) -> bool:
    """
    Check if a role has a specific permission.

    Args:
        role: Clinic role
        permission: Permission to check

    Returns:
        bool: True if the role has the permission
    """
    return permission in ROLE_PERMISSIONS[Role(role)]


def validate_permissions(role: Role, required_permissions: List[Permission]) -> bool:
    """
    Validate that a role has all required permissions.

    Args:
        role: Clinic role
        required_permissions: List of required permissions

    Returns:
        bool: True if the role has all required permissions
    """
    granted = ROLE_PERMISSIONS[Role(role)]
    return all(perm in granted for perm in required_permissions)
