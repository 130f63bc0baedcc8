"""
Domain models - Accounts, roles and the values passed between services.

Plain dataclasses and enums only; persistence and transport layers map
these to their own representations.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class ApprovalStatus(str, Enum):
    """
    Position of an account in the onboarding lifecycle.

    State Transitions (forward-only):
    - UNVERIFIED -> PENDING   (email verified, awaiting an admin)
    - UNVERIFIED -> APPROVED  (email verified, admin approval disabled)
    - PENDING -> APPROVED     (admin approval)
    - PENDING -> REJECTED     (admin rejection)

    APPROVED and REJECTED are terminal. An APPROVED account flagged
    ``expired`` may be claimed again through registration.
    """

    UNVERIFIED = "unverified"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    """Capability tier embedded in issued tokens."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super admin"

    @classmethod
    def parse(cls, value: str) -> "Role | None":
        try:
            return cls(value)
        except ValueError:
            return None


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


class AccountCheck(Enum):
    """Outcome of the idle-account check."""

    APPROVED = "approved"
    DELETED = "deleted"


@dataclass
class Account:
    """A registered account as held by the credential store."""

    id: int
    email: str
    password_hash: str
    name: str
    surname: str
    account_no: int | None = None
    birthdate: date | None = None
    approval_status: ApprovalStatus = ApprovalStatus.UNVERIFIED
    role: Role = Role.USER
    verification_code: str | None = None
    code_expires_at: datetime | None = None
    is_verified: bool = False
    expired: bool = False
    profile_picture: str = ""
    picture_ref: str = ""

    @property
    def has_outstanding_code(self) -> bool:
        return self.verification_code is not None

    @property
    def is_claimable(self) -> bool:
        """Registration may overwrite this account in place."""
        if self.approval_status == ApprovalStatus.UNVERIFIED:
            return True
        # Only an approved account retired by an admin frees its email
        return self.approval_status == ApprovalStatus.APPROVED and self.expired


@dataclass
class NewAccount:
    """Fields supplied when an account row is first written."""

    email: str
    password_hash: str
    name: str
    surname: str
    birthdate: date | None = None
    approval_status: ApprovalStatus = ApprovalStatus.UNVERIFIED
    role: Role = Role.USER
    verification_code: str | None = None
    code_expires_at: datetime | None = None
    is_verified: bool = False


@dataclass
class RoleRecord:
    """A named role and the privileges it grants."""

    id: int
    name: str
    privileges: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OneTimeCode:
    """A numeric challenge and the last instant at which it is accepted."""

    code: str
    expires_at: datetime


@dataclass(frozen=True)
class Principal:
    """Identity decoded from a valid access token."""

    account_id: int
    email: str
    role: Role


@dataclass(frozen=True)
class SignInResult:
    token: str
    expires_in: int
    account: Account


DEFAULT_ROLES: dict[str, list[str]] = {
    Role.SUPER_ADMIN.value: ["create_user", "delete_user", "update_user", "manage_roles"],
    Role.ADMIN.value: ["create_user", "delete_user", "update_user"],
    Role.USER.value: [],
}
