"""
Registration domain service - onboarding state machine implementation.

This module contains the core business logic for self-serve signup:
email ownership is proven with a one-time code before an account is
handed to an administrator for approval.

Onboarding State Machine (Forward-Only Transitions)
===================================================

States:
- UNVERIFIED: Initial state after registration (code sent, not yet confirmed)
- PENDING: Email confirmed, waiting for an administrator
- APPROVED: Terminal; the account may sign in
- REJECTED: Terminal; the email cannot be registered again

Valid Transitions:
    UNVERIFIED -> PENDING    (verify_email, admin approval required)
    UNVERIFIED -> APPROVED   (verify_email, admin approval disabled)
    PENDING -> APPROVED      (ApprovalService.approve)
    PENDING -> REJECTED      (ApprovalService.reject)

Re-registration:
    An UNVERIFIED account, or any account flagged ``expired``, is
    overwritten in place by a new registration for the same email.

Password reset codes share the code fields but never move the status.
Every transition is a conditional update keyed on the prior state, so two
concurrent requests cannot both succeed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime

from .exceptions import AccountNotFound, EmailAlreadyRegistered, InvalidCode
from .models import (
    ADMIN_ROLES,
    Account,
    AccountCheck,
    ApprovalStatus,
    NewAccount,
)
from .notifications import notify
from .otp import OtpGenerator, check_code, utc_now
from .passwords import hash_password
from .ports import AccountRepository, EmailSender

logger = logging.getLogger(__name__)


def describe_ttl(seconds: int) -> str:
    """Human wording for a code lifetime, e.g. "10 minutes" or "45 seconds"."""
    if seconds % 60:
        return f"{seconds} second" + ("" if seconds == 1 else "s")
    minutes = seconds // 60
    return f"{minutes} minute" + ("" if minutes == 1 else "s")


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class RegistrationService:
    """
    Domain service for the account lifecycle up to admin review.

    Orchestrates registration, email verification, password reset and
    the idle-account check.
    """

    repository: AccountRepository
    email_sender: EmailSender
    otp: OtpGenerator = field(default_factory=OtpGenerator)
    require_admin_approval: bool = True
    bcrypt_cost: int = 10
    clock: Callable[[], datetime] = field(default=utc_now)

    def register(
        self,
        email: str,
        password: str,
        name: str,
        surname: str,
        birthdate: date | None = None,
    ) -> Account:
        """
        Register a new account and send its verification code.

        Args:
            email: User's email address (will be normalized)
            password: User's password (will be hashed)
            name: Given name
            surname: Family name
            birthdate: Optional date of birth

        Returns:
            The stored UNVERIFIED account

        Raises:
            EmailAlreadyRegistered: If the email belongs to a pending,
                rejected or live approved account
        """
        normalized_email = normalize_email(email)
        challenge = self.otp.generate()

        account = self.repository.claim_registration(
            NewAccount(
                email=normalized_email,
                password_hash=hash_password(password, self.bcrypt_cost),
                name=name,
                surname=surname,
                birthdate=birthdate,
                verification_code=challenge.code,
                code_expires_at=challenge.expires_at,
            )
        )
        if account is None:
            logger.info("Registration refused for claimed email %s", normalized_email)
            raise EmailAlreadyRegistered(normalized_email)

        logger.info("Account %s registered (no. %s)", account.id, account.account_no)
        notify(
            self.email_sender,
            normalized_email,
            "Email Verification Code",
            f"Your email verification code is: {challenge.code}. "
            f"It will expire in {describe_ttl(self.otp.ttl_seconds)}.",
        )
        return account

    def verify_email(self, email: str, code: str) -> ApprovalStatus:
        """
        Confirm email ownership with the registration code.

        On success the code is cleared, the account is marked verified and
        moves to PENDING (administrators are notified) or, when admin
        approval is disabled, straight to APPROVED.

        Returns:
            The status the account moved to

        Raises:
            InvalidCode: No UNVERIFIED account holds this code
            CodeExpired: The code matched but has expired
        """
        normalized_email = normalize_email(email)
        account = self.repository.get_by_email(normalized_email)
        if account is not None and account.approval_status != ApprovalStatus.UNVERIFIED:
            account = None
        check_code(account, code, self.clock())

        new_status = (
            ApprovalStatus.PENDING if self.require_admin_approval else ApprovalStatus.APPROVED
        )
        if not self.repository.complete_verification(account.id, code, new_status):
            # Superseded or consumed between the read and the update
            raise InvalidCode()

        logger.info("Account %s verified, status now %s", account.id, new_status.value)
        if new_status == ApprovalStatus.PENDING:
            self._notify_admins(account)
        return new_status

    def forgot_password(self, email: str) -> None:
        """
        Issue a password reset code, replacing any outstanding one.

        Raises:
            AccountNotFound: If the email is unknown
        """
        normalized_email = normalize_email(email)
        challenge = self.otp.generate()
        if not self.repository.set_verification_code(
            normalized_email, challenge.code, challenge.expires_at
        ):
            raise AccountNotFound(normalized_email)

        notify(
            self.email_sender,
            normalized_email,
            "Password Reset Code",
            f"Your password reset code is: {challenge.code}",
        )

    def verify_code(self, email: str, code: str) -> None:
        """
        Check a reset code without consuming it.

        Raises:
            InvalidCode: No account holds this code
            CodeExpired: The code matched but has expired
        """
        account = self.repository.get_by_email(normalize_email(email))
        check_code(account, code, self.clock())

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Replace the password after re-checking the reset code.

        The code is validated again here; a prior verify_code call leaves
        no trace on the account.

        Raises:
            InvalidCode: No account holds this code
            CodeExpired: The code matched but has expired
        """
        account = self.repository.get_by_email(normalize_email(email))
        check_code(account, code, self.clock())

        if not self.repository.reset_password(
            account.id, code, hash_password(new_password, self.bcrypt_cost)
        ):
            raise InvalidCode()
        logger.info("Password reset for account %s", account.id)

    def check_account(self, email: str) -> AccountCheck:
        """
        Report whether an account is approved, DELETING it if it is not.

        This is a destructive read: any account that is not APPROVED
        (unverified, pending or rejected) is removed permanently as a side
        effect of the check. There is no recovery.

        Raises:
            AccountNotFound: If the email is unknown
        """
        account = self.repository.get_by_email(normalize_email(email))
        if account is None:
            raise AccountNotFound(email)
        if account.approval_status == ApprovalStatus.APPROVED:
            return AccountCheck.APPROVED

        if self.repository.delete_unapproved(account.id):
            logger.warning(
                "Deleted unapproved account %s (status %s) on owner check",
                account.id,
                account.approval_status.value,
            )
            return AccountCheck.DELETED
        # Approved concurrently
        return AccountCheck.APPROVED

    def _notify_admins(self, account: Account) -> None:
        for admin in self.repository.list_by_roles(ADMIN_ROLES):
            notify(
                self.email_sender,
                admin.email,
                "New User Approval Request",
                f"A new user ({account.name} {account.surname} - {account.email}) has "
                "completed email verification and is awaiting approval.",
            )
