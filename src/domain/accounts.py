"""
Account management - administrator CRUD and self-service profile.

Administrator edits never touch ``approval_status``; status only moves
through registration and ApprovalService.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from .exceptions import AccountNotFound, InvalidRole, ValidationFailed
from .models import Account, ApprovalStatus, NewAccount, Role
from .passwords import hash_password
from .ports import AccountRepository, ObjectStorage
from .registration import normalize_email

logger = logging.getLogger(__name__)


def _parse_role(role: str) -> Role:
    parsed = Role.parse(role)
    if parsed is None:
        raise InvalidRole(role)
    return parsed


@dataclass
class AccountService:
    repository: AccountRepository
    storage: ObjectStorage
    bcrypt_cost: int = 10

    def list_accounts(self) -> list[Account]:
        return self.repository.list_all()

    def get_account(self, account_id: int) -> Account:
        account = self.repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def create_account(
        self,
        email: str,
        password: str,
        name: str,
        surname: str,
        birthdate: date | None,
        role: str,
    ) -> Account:
        """
        Create an account that skips onboarding (already verified and approved).

        Raises:
            InvalidRole: Unknown role
            EmailAlreadyRegistered: Email is taken, whatever its status
        """
        account = self.repository.create(
            NewAccount(
                email=normalize_email(email),
                password_hash=hash_password(password, self.bcrypt_cost),
                name=name,
                surname=surname,
                birthdate=birthdate,
                approval_status=ApprovalStatus.APPROVED,
                role=_parse_role(role),
                is_verified=True,
            )
        )
        logger.info("Account %s created by administrator", account.id)
        return account

    def update_account(
        self,
        account_id: int,
        *,
        name: str | None = None,
        surname: str | None = None,
        email: str | None = None,
        birthdate: date | None = None,
        password: str | None = None,
        role: str | None = None,
        expired: bool | None = None,
    ) -> Account:
        """
        Apply the supplied (non-None) changes.

        Raises:
            InvalidRole: Unknown role
            AccountNotFound: No such account
            EmailAlreadyRegistered: New email is taken
        """
        changes: dict[str, Any] = {}
        if name:
            changes["name"] = name
        if surname:
            changes["surname"] = surname
        if email:
            changes["email"] = normalize_email(email)
        if birthdate is not None:
            changes["birthdate"] = birthdate
        if role is not None:
            changes["role"] = _parse_role(role)
        if expired is not None:
            changes["expired"] = expired
        if password:
            changes["password_hash"] = hash_password(password, self.bcrypt_cost)

        if not changes:
            return self.get_account(account_id)

        account = self.repository.update(account_id, changes)
        if account is None:
            raise AccountNotFound(account_id)
        logger.info("Account %s updated: %s", account_id, ", ".join(sorted(changes)))
        return account

    def delete_account(self, account_id: int) -> None:
        if not self.repository.delete(account_id):
            raise AccountNotFound(account_id)
        logger.info("Account %s deleted by administrator", account_id)

    def upload_profile_picture(
        self, account_id: int, data: bytes, filename: str, content_type: str
    ) -> Account:
        """
        Store a new profile picture and release the previous one.

        The new object is uploaded and recorded before the old one is
        deleted; a failed delete only leaves an orphaned object behind.

        Raises:
            ValidationFailed: Empty upload or not an image
            AccountNotFound: No such account
        """
        if not data:
            raise ValidationFailed("No file uploaded")
        if not content_type.startswith("image/"):
            raise ValidationFailed("Profile picture must be an image")

        account = self.get_account(account_id)
        previous_ref = account.picture_ref

        stored = self.storage.upload(data, filename, content_type)
        updated = self.repository.update(
            account_id, {"profile_picture": stored.url, "picture_ref": stored.reference}
        )
        if updated is None:
            raise AccountNotFound(account_id)

        if previous_ref:
            try:
                self.storage.delete(previous_ref)
            except Exception:
                logger.exception("Failed to delete previous picture %s", previous_ref)
        return updated
