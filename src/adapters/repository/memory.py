"""
In-memory repository adapters - Implement the repository protocols with dicts.

Mirrors the conditional-update semantics of the PostgreSQL adapters under a
single lock, so the domain behaves the same in tests and local runs as it
does against the database.
"""

import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any

from src.domain.exceptions import EmailAlreadyRegistered, RoleAlreadyExists
from src.domain.models import Account, ApprovalStatus, NewAccount, Role, RoleRecord


class InMemoryAccountRepository:
    """Implements AccountRepository protocol; returns copies, never live records."""

    def __init__(self, account_number_base: int = 1000) -> None:
        self._accounts: dict[int, Account] = {}
        self._ids = itertools.count(1)
        self._account_number_base = account_number_base
        self._lock = threading.Lock()

    def _by_email(self, email: str) -> Account | None:
        return next((a for a in self._accounts.values() if a.email == email), None)

    def _next_account_no(self) -> int:
        numbers = [a.account_no for a in self._accounts.values() if a.account_no is not None]
        return max(numbers) + 1 if numbers else self._account_number_base

    def _insert(self, account: NewAccount) -> Account:
        stored = Account(
            id=next(self._ids),
            account_no=self._next_account_no(),
            email=account.email,
            password_hash=account.password_hash,
            name=account.name,
            surname=account.surname,
            birthdate=account.birthdate,
            approval_status=account.approval_status,
            role=account.role,
            verification_code=account.verification_code,
            code_expires_at=account.code_expires_at,
            is_verified=account.is_verified,
        )
        self._accounts[stored.id] = stored
        return replace(stored)

    def get_by_id(self, account_id: int) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return replace(account) if account else None

    def get_by_email(self, email: str) -> Account | None:
        with self._lock:
            account = self._by_email(email)
            return replace(account) if account else None

    def list_all(self) -> list[Account]:
        with self._lock:
            return [replace(a) for a in sorted(self._accounts.values(), key=lambda a: a.id)]

    def list_by_status(self, status: ApprovalStatus) -> list[Account]:
        return [a for a in self.list_all() if a.approval_status == status]

    def list_by_roles(self, roles: frozenset[Role]) -> list[Account]:
        return [a for a in self.list_all() if a.role in roles]

    def claim_registration(self, account: NewAccount) -> Account | None:
        with self._lock:
            existing = self._by_email(account.email)
            if existing is None:
                return self._insert(
                    replace(account, approval_status=ApprovalStatus.UNVERIFIED, role=Role.USER)
                )
            if not existing.is_claimable:
                return None
            existing.password_hash = account.password_hash
            existing.name = account.name
            existing.surname = account.surname
            existing.birthdate = account.birthdate
            existing.approval_status = ApprovalStatus.UNVERIFIED
            existing.role = Role.USER
            existing.verification_code = account.verification_code
            existing.code_expires_at = account.code_expires_at
            existing.is_verified = False
            existing.expired = False
            existing.profile_picture = ""
            existing.picture_ref = ""
            return replace(existing)

    def create(self, account: NewAccount) -> Account:
        with self._lock:
            if self._by_email(account.email) is not None:
                raise EmailAlreadyRegistered(account.email)
            return self._insert(account)

    def set_verification_code(self, email: str, code: str, expires_at: datetime) -> bool:
        with self._lock:
            account = self._by_email(email)
            if account is None:
                return False
            account.verification_code = code
            account.code_expires_at = expires_at
            return True

    def complete_verification(
        self, account_id: int, code: str, new_status: ApprovalStatus
    ) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if (
                account is None
                or account.approval_status != ApprovalStatus.UNVERIFIED
                or account.verification_code != code
            ):
                return False
            account.approval_status = new_status
            account.is_verified = True
            account.verification_code = None
            account.code_expires_at = None
            return True

    def transition_status(
        self,
        account_id: int,
        expected: ApprovalStatus,
        new_status: ApprovalStatus,
        role: Role | None = None,
    ) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.approval_status != expected:
                return False
            account.approval_status = new_status
            if role is not None:
                account.role = role
            return True

    def reset_password(self, account_id: int, code: str, password_hash: str) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.verification_code != code:
                return False
            account.password_hash = password_hash
            account.verification_code = None
            account.code_expires_at = None
            return True

    def update(self, account_id: int, changes: dict[str, Any]) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                return None
            email = changes.get("email")
            if email is not None:
                holder = self._by_email(email)
                if holder is not None and holder.id != account_id:
                    raise EmailAlreadyRegistered(email)
            for column, value in changes.items():
                setattr(account, column, value)
            return replace(account)

    def delete(self, account_id: int) -> bool:
        with self._lock:
            return self._accounts.pop(account_id, None) is not None

    def delete_unapproved(self, account_id: int) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.approval_status == ApprovalStatus.APPROVED:
                return False
            del self._accounts[account_id]
            return True


class InMemoryRoleRepository:
    """Implements RoleRepository protocol."""

    def __init__(self) -> None:
        self._roles: dict[int, RoleRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _by_name(self, name: str) -> RoleRecord | None:
        return next((r for r in self._roles.values() if r.name == name), None)

    @staticmethod
    def _copy(role: RoleRecord) -> RoleRecord:
        return RoleRecord(id=role.id, name=role.name, privileges=list(role.privileges))

    def get_by_id(self, role_id: int) -> RoleRecord | None:
        with self._lock:
            role = self._roles.get(role_id)
            return self._copy(role) if role else None

    def get_by_name(self, name: str) -> RoleRecord | None:
        with self._lock:
            role = self._by_name(name)
            return self._copy(role) if role else None

    def list_all(self) -> list[RoleRecord]:
        with self._lock:
            return [self._copy(r) for r in sorted(self._roles.values(), key=lambda r: r.id)]

    def create(self, name: str, privileges: list[str]) -> RoleRecord:
        with self._lock:
            if self._by_name(name) is not None:
                raise RoleAlreadyExists(name)
            role = RoleRecord(id=next(self._ids), name=name, privileges=list(privileges))
            self._roles[role.id] = role
            return self._copy(role)

    def update(
        self, role_id: int, name: str | None, privileges: list[str] | None
    ) -> RoleRecord | None:
        with self._lock:
            role = self._roles.get(role_id)
            if role is None:
                return None
            if name is not None:
                holder = self._by_name(name)
                if holder is not None and holder.id != role_id:
                    raise RoleAlreadyExists(name)
                role.name = name
            if privileges is not None:
                role.privileges = list(privileges)
            return self._copy(role)

    def delete(self, role_id: int) -> bool:
        with self._lock:
            return self._roles.pop(role_id, None) is not None

    def create_if_missing(self, name: str, privileges: list[str]) -> bool:
        with self._lock:
            if self._by_name(name) is not None:
                return False
            role = RoleRecord(id=next(self._ids), name=name, privileges=list(privileges))
            self._roles[role.id] = role
            return True
