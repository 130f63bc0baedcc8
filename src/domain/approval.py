"""
Approval domain service - administrator decisions on PENDING accounts.

Both decisions are conditional updates keyed on PENDING, so a request can
be processed exactly once even when two administrators act at the same time.
"""

import logging
from dataclasses import dataclass

from .exceptions import AccountNotFound, AlreadyProcessed, InvalidRole
from .models import Account, ApprovalStatus, Role
from .notifications import notify
from .ports import AccountRepository, EmailSender

logger = logging.getLogger(__name__)


@dataclass
class ApprovalService:
    repository: AccountRepository
    email_sender: EmailSender

    def list_pending(self) -> list[Account]:
        """Registration requests awaiting a decision."""
        return self.repository.list_by_status(ApprovalStatus.PENDING)

    def approve(self, account_id: int, role: str = Role.USER.value) -> Account:
        """
        Approve a PENDING account and assign its role.

        Args:
            account_id: Target account
            role: One of ``user``, ``admin``, ``super admin``

        Raises:
            InvalidRole: Role is not one of the three account roles
            AccountNotFound: No such account
            AlreadyProcessed: Account is not PENDING
        """
        parsed_role = Role.parse(role)
        if parsed_role is None:
            raise InvalidRole(role)

        account = self._get_pending(account_id)
        if not self.repository.transition_status(
            account_id, ApprovalStatus.PENDING, ApprovalStatus.APPROVED, role=parsed_role
        ):
            raise AlreadyProcessed(account_id)

        logger.info("Account %s approved as %s", account_id, parsed_role.value)
        account.approval_status = ApprovalStatus.APPROVED
        account.role = parsed_role
        notify(
            self.email_sender,
            account.email,
            "Registration Approved",
            "Your registration has been approved. You can now sign in.",
        )
        return account

    def reject(self, account_id: int) -> Account:
        """
        Reject a PENDING account and notify its owner.

        Raises:
            AccountNotFound: No such account
            AlreadyProcessed: Account is not PENDING
        """
        account = self._get_pending(account_id)
        if not self.repository.transition_status(
            account_id, ApprovalStatus.PENDING, ApprovalStatus.REJECTED
        ):
            raise AlreadyProcessed(account_id)

        logger.info("Account %s rejected", account_id)
        account.approval_status = ApprovalStatus.REJECTED
        notify(
            self.email_sender,
            account.email,
            "Registration Rejected",
            "Your registration has been rejected.",
        )
        return account

    def _get_pending(self, account_id: int) -> Account:
        account = self.repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        if account.approval_status != ApprovalStatus.PENDING:
            raise AlreadyProcessed(account_id)
        return account
