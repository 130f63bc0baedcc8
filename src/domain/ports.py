"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from .models import Account, ApprovalStatus, NewAccount, Role, RoleRecord


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def get_by_id(self, account_id: int) -> Account | None: ...

    def get_by_email(self, email: str) -> Account | None: ...

    def list_all(self) -> list[Account]: ...

    def list_by_status(self, status: ApprovalStatus) -> list[Account]: ...

    def list_by_roles(self, roles: frozenset[Role]) -> list[Account]: ...

    def claim_registration(self, account: NewAccount) -> Account | None:
        """
        Atomically create an account or overwrite a claimable one.

        A fresh email gets a new row and the next account number. An
        existing row is overwritten in place (same id and account number)
        only when it is UNVERIFIED or flagged expired; the overwrite resets
        status, role, verification and the expired flag.

        Returns:
            The stored account, or None if the email belongs to an
            account that cannot be overwritten
        """
        ...

    def create(self, account: NewAccount) -> Account:
        """
        Insert a new account with the next account number.

        Raises:
            EmailAlreadyRegistered: If the email is taken
        """
        ...

    def set_verification_code(self, email: str, code: str, expires_at: datetime) -> bool:
        """Replace any outstanding code. Returns False if the email is unknown."""
        ...

    def complete_verification(
        self, account_id: int, code: str, new_status: ApprovalStatus
    ) -> bool:
        """
        Mark email ownership confirmed and advance status.

        Conditional on the account still being UNVERIFIED and still holding
        ``code``; clears the code fields. Returns False if the condition no
        longer holds.
        """
        ...

    def transition_status(
        self,
        account_id: int,
        expected: ApprovalStatus,
        new_status: ApprovalStatus,
        role: Role | None = None,
    ) -> bool:
        """
        Move an account from ``expected`` to ``new_status``.

        Single conditional update keyed on the prior status; optionally
        reassigns the role. Returns False if the account is no longer in
        ``expected``.
        """
        ...

    def reset_password(self, account_id: int, code: str, password_hash: str) -> bool:
        """Replace the password hash and clear the code, conditional on ``code``."""
        ...

    def update(self, account_id: int, changes: dict[str, Any]) -> Account | None:
        """
        Apply field changes. Returns the updated account, or None if missing.

        Raises:
            EmailAlreadyRegistered: If an email change collides
        """
        ...

    def delete(self, account_id: int) -> bool: ...

    def delete_unapproved(self, account_id: int) -> bool:
        """Delete the account only if it is not APPROVED."""
        ...


class RoleRepository(Protocol):
    """Port interface for role/privilege persistence."""

    def get_by_id(self, role_id: int) -> RoleRecord | None: ...

    def get_by_name(self, name: str) -> RoleRecord | None: ...

    def list_all(self) -> list[RoleRecord]: ...

    def create(self, name: str, privileges: list[str]) -> RoleRecord:
        """
        Raises:
            RoleAlreadyExists: If the name is taken
        """
        ...

    def update(
        self, role_id: int, name: str | None, privileges: list[str] | None
    ) -> RoleRecord | None: ...

    def delete(self, role_id: int) -> bool: ...

    def create_if_missing(self, name: str, privileges: list[str]) -> bool:
        """Insert the role unless the name exists. Returns True if inserted."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_email(self, email: str, subject: str, body: str) -> None:
        """
        Deliver a plain-text message.

        Args:
            email: Recipient email address
            subject: Message subject
            body: Plain-text body
        """
        ...


@dataclass(frozen=True)
class StoredObject:
    """Location of an uploaded object."""

    url: str
    reference: str


class ObjectStorage(Protocol):
    """Port interface for binary object storage (profile pictures)."""

    def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject: ...

    def delete(self, reference: str) -> None: ...
