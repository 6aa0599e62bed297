"""
Credential sources.

Staff users and pet owners authenticate the same way but live in different
tables with slightly different rules. Both are exposed through the
CredentialSource interface; callers pick the provider for the login context
(back office or client portal) and never branch on the identity kind
themselves.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from sqlalchemy.orm import Session

from ..core.permissions import Permission, Role, get_permissions_for_role
from ..core.security import verify_password
from ..exceptions import NotFoundException
from .exceptions import InactiveAccountException, InvalidCredentialsException, NoCredentialsException
from .models import IdentityKind, Owner, User

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """An authenticated principal, staff user or owner."""
    id: int
    name: str
    email: str
    role: Role
    kind: IdentityKind
    is_active: bool
    password_hash: Optional[str] = field(default=None, repr=False)

    @property
    def authorities(self) -> List[str]:
        return [self.role.authority]

    @property
    def permissions(self) -> Set[Permission]:
        return get_permissions_for_role(self.role)


class CredentialSource(ABC):
    """Loads identities of one kind by email."""

    kind: IdentityKind
    resource_name: str

    @abstractmethod
    def find_record(self, db: Session, email: str) -> Optional[Union[User, Owner]]:
        """Return the stored record for an email, or None."""

    @abstractmethod
    def to_identity(self, record: Union[User, Owner]) -> Identity:
        """Build the Identity for a stored record."""

    def check_record(self, record: Union[User, Owner]) -> None:
        """Raise if the record may not authenticate."""
        if not record.is_active:
            logger.warning(f"Inactive {self.resource_name} tried to authenticate: {record.email}")
            raise InactiveAccountException()

    def load_by_email(self, db: Session, email: str) -> Identity:
        """
        Resolve an email to an identity.

        Raises:
            NotFoundException: No record with this email
            InactiveAccountException: The record is deactivated
            NoCredentialsException: The record has no password (owners only)
        """
        record = self.find_record(db, email)
        if record is None:
            raise NotFoundException(self.resource_name, "email", email)
        self.check_record(record)
        return self.to_identity(record)

    def set_password(self, db: Session, email: str, password_hash: str) -> Identity:
        """Store a new password hash for the record with this email."""
        record = self.find_record(db, email)
        if record is None:
            raise NotFoundException(self.resource_name, "email", email)
        record.password_hash = password_hash
        db.commit()
        db.refresh(record)
        return self.to_identity(record)


class StaffCredentialSource(CredentialSource):
    kind = IdentityKind.USER
    resource_name = "User"

    def find_record(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    def to_identity(self, record: User) -> Identity:
        return Identity(
            id=record.id,
            name=record.name,
            email=record.email,
            role=Role(record.role),
            kind=self.kind,
            is_active=record.is_active,
            password_hash=record.password_hash,
        )


class OwnerCredentialSource(CredentialSource):
    kind = IdentityKind.OWNER
    resource_name = "Owner"

    def find_record(self, db: Session, email: str) -> Optional[Owner]:
        return db.query(Owner).filter(Owner.email == email).first()

    def check_record(self, record: Owner) -> None:
        super().check_record(record)
        # Owners registered at the front desk may never have set a password
        if not record.password_hash or not record.password_hash.strip():
            logger.warning(f"Owner without password tried to authenticate: {record.email}")
            raise NoCredentialsException()

    def to_identity(self, record: Owner) -> Identity:
        return Identity(
            id=record.id,
            name=record.name,
            email=record.email,
            role=Role.CLIENT,
            kind=self.kind,
            is_active=record.is_active,
            password_hash=record.password_hash,
        )


staff_credentials = StaffCredentialSource()
owner_credentials = OwnerCredentialSource()

CREDENTIAL_SOURCES: Dict[IdentityKind, CredentialSource] = {
    IdentityKind.USER: staff_credentials,
    IdentityKind.OWNER: owner_credentials,
}


def get_credential_source(kind: IdentityKind) -> CredentialSource:
    return CREDENTIAL_SOURCES[IdentityKind(kind)]


def credential_sources_for_role(role_claim: Optional[str]) -> List[CredentialSource]:
    """
    Providers to try, in order, for a token carrying this role claim.

    CLIENT tokens belong to owners, any staff role to users. Tokens without a
    usable claim are tried as staff first, then as owner.
    """
    if role_claim == Role.CLIENT.value:
        return [owner_credentials]
    if role_claim in {role.value for role in Role}:
        return [staff_credentials]
    return [staff_credentials, owner_credentials]


def authenticate(db: Session, source: CredentialSource, email: str, password: str) -> Identity:
    """
    Check an email/password pair against a credential source.

    Raises:
        NotFoundException, InactiveAccountException, NoCredentialsException:
            From load_by_email
        InvalidCredentialsException: The password does not match
    """
    identity = source.load_by_email(db, email)
    if not verify_password(password, identity.password_hash):
        raise InvalidCredentialsException()
    return identity
