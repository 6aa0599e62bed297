"""
Tests for the staff and owner credential sources.
"""
import pytest

from vetclinic.auth.credentials import (
    authenticate,
    credential_sources_for_role,
    get_credential_source,
    owner_credentials,
    staff_credentials,
)
from vetclinic.auth.exceptions import InactiveAccountException, InvalidCredentialsException, NoCredentialsException
from vetclinic.auth.models import IdentityKind
from vetclinic.core.permissions import Role
from vetclinic.core.security import verify_password
from vetclinic.exceptions import NotFoundException


def test_staff_identity(db, make_user):
    """
    Test that a staff user resolves with its role and authority.
    """
    user = make_user(email="vet@clinic.com", role=Role.VET)
    identity = staff_credentials.load_by_email(db, "vet@clinic.com")

    assert identity.id == user.id
    assert identity.kind == IdentityKind.USER
    assert identity.role == Role.VET
    assert identity.authorities == ["ROLE_VET"]


def test_owner_identity_is_client(db, make_owner):
    """
    Test that owners always resolve with the CLIENT role.
    """
    make_owner(email="ana@mail.com")
    identity = owner_credentials.load_by_email(db, "ana@mail.com")

    assert identity.kind == IdentityKind.OWNER
    assert identity.role == Role.CLIENT
    assert identity.authorities == ["ROLE_CLIENT"]


def test_unknown_email_not_found(db):
    """
    Test that unknown emails raise not found in both sources.
    """
    with pytest.raises(NotFoundException):
        staff_credentials.load_by_email(db, "ghost@clinic.com")
    with pytest.raises(NotFoundException):
        owner_credentials.load_by_email(db, "ghost@clinic.com")


def test_inactive_staff_rejected(db, make_user):
    """
    Test that inactive users cannot authenticate.
    """
    make_user(email="old@clinic.com", is_active=False)
    with pytest.raises(InactiveAccountException):
        staff_credentials.load_by_email(db, "old@clinic.com")


def test_owner_without_password_rejected(db, make_owner):
    """
    Test that owners registered without a password cannot authenticate.
    """
    make_owner(email="walkin@mail.com", password=None)
    with pytest.raises(NoCredentialsException):
        owner_credentials.load_by_email(db, "walkin@mail.com")


def test_inactive_check_precedes_missing_password(db, make_owner):
    """
    Test that an inactive owner without password reports the inactive account.
    """
    make_owner(email="gone@mail.com", password=None, is_active=False)
    with pytest.raises(InactiveAccountException):
        owner_credentials.load_by_email(db, "gone@mail.com")


def test_authenticate_checks_password(db, make_user):
    """
    Test that authenticate accepts the right password only.
    """
    make_user(email="rec@clinic.com", password="Frontdesk2024")

    identity = authenticate(db, staff_credentials, "rec@clinic.com", "Frontdesk2024")
    assert identity.email == "rec@clinic.com"

    with pytest.raises(InvalidCredentialsException):
        authenticate(db, staff_credentials, "rec@clinic.com", "Wrongpass2024")


def test_set_password(db, make_owner):
    """
    Test that a new hash is stored for the record.
    """
    make_owner(email="ana@mail.com")
    identity = owner_credentials.set_password(db, "ana@mail.com", "$2b$12$" + "x" * 53)
    assert identity.password_hash.startswith("$2b$12$")


def test_identity_repr_hides_hash(db, make_user):
    """
    Test that the password hash does not show up in the identity repr.
    """
    make_user(email="vet@clinic.com")
    identity = staff_credentials.load_by_email(db, "vet@clinic.com")
    assert verify_password("Clinic2024pass", identity.password_hash)
    assert identity.password_hash not in repr(identity)


@pytest.mark.parametrize("claim,expected", [
    ("CLIENT", [owner_credentials]),
    ("VET", [staff_credentials]),
    ("ADMIN", [staff_credentials]),
    (None, [staff_credentials, owner_credentials]),
    ("SUPERUSER", [staff_credentials, owner_credentials]),
])
def test_source_selection_by_role_claim(claim, expected):
    """
    Test which credential sources are tried for a token role claim.
    """
    assert credential_sources_for_role(claim) == expected


def test_get_credential_source_accepts_wire_value():
    """
    Test lookup by persisted identity kind value.
    """
    assert get_credential_source("USUARIO") is staff_credentials
    assert get_credential_source(IdentityKind.OWNER) is owner_credentials
