"""Role management - named roles and their privilege sets."""

import logging
from dataclasses import dataclass

from .exceptions import RoleNotFound, ValidationFailed
from .models import DEFAULT_ROLES, RoleRecord
from .ports import RoleRepository

logger = logging.getLogger(__name__)


def _clean_privileges(privileges: list[str]) -> list[str]:
    # Keep first occurrence order, drop blanks and duplicates
    seen: dict[str, None] = {}
    for privilege in privileges:
        privilege = privilege.strip()
        if privilege:
            seen.setdefault(privilege, None)
    return list(seen)


@dataclass
class RoleService:
    repository: RoleRepository

    def seed_defaults(self) -> int:
        """
        Create the built-in roles that are missing.

        Existing roles are left untouched, including edited privilege sets.

        Returns:
            Number of roles created
        """
        created = 0
        for name, privileges in DEFAULT_ROLES.items():
            if self.repository.create_if_missing(name, list(privileges)):
                logger.info('Role "%s" created', name)
                created += 1
        return created

    def list_roles(self) -> list[RoleRecord]:
        return self.repository.list_all()

    def get_role(self, role_id: int) -> RoleRecord:
        role = self.repository.get_by_id(role_id)
        if role is None:
            raise RoleNotFound(role_id)
        return role

    def create_role(self, name: str, privileges: list[str] | None = None) -> RoleRecord:
        """
        Raises:
            ValidationFailed: Blank name
            RoleAlreadyExists: Name taken
        """
        name = name.strip()
        if not name:
            raise ValidationFailed("Role name is required")
        role = self.repository.create(name, _clean_privileges(privileges or []))
        logger.info('Role "%s" created with %d privilege(s)', role.name, len(role.privileges))
        return role

    def update_role(
        self, role_id: int, name: str | None = None, privileges: list[str] | None = None
    ) -> RoleRecord:
        """
        Raises:
            RoleNotFound: No such role
            RoleAlreadyExists: New name taken
        """
        name = name.strip() if name else None
        if privileges is not None:
            privileges = _clean_privileges(privileges)
        role = self.repository.update(role_id, name or None, privileges)
        if role is None:
            raise RoleNotFound(role_id)
        logger.info('Role %s updated ("%s")', role_id, role.name)
        return role

    def delete_role(self, role_id: int) -> None:
        if not self.repository.delete(role_id):
            raise RoleNotFound(role_id)
        logger.info("Role %s deleted", role_id)
