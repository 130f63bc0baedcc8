"""
Authorization gate - single entry point for protecting operations.

Role checks use the role carried by the token. Privilege checks look the
role up in the role store on every call, so privilege edits apply to the
next request without re-issuing tokens.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .authentication import TokenService
from .exceptions import Forbidden, Unauthorized
from .models import Principal, Role
from .ports import RoleRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthorizationGate:
    tokens: TokenService
    roles: RoleRepository

    def authenticate(self, token: str | None) -> Principal:
        """
        Resolve a raw access token to its principal.

        Raises:
            Unauthorized: No token presented
            InvalidToken: Token present but not valid
        """
        if token is None or not token.strip():
            raise Unauthorized()
        return self.tokens.decode(token)

    def require_role(self, principal: Principal, allowed: Iterable[Role]) -> Principal:
        """
        Raises:
            Forbidden: Principal's role is not in ``allowed``
        """
        if principal.role not in frozenset(allowed):
            logger.info("Account %s denied: role %s", principal.account_id, principal.role.value)
            raise Forbidden()
        return principal

    def require_privilege(self, principal: Principal, privilege: str) -> Principal:
        """
        Raises:
            Forbidden: The principal's role does not grant ``privilege``
        """
        role = self.roles.get_by_name(principal.role.value)
        if role is None or privilege not in role.privileges:
            logger.info(
                "Account %s denied: role %s lacks %s",
                principal.account_id,
                principal.role.value,
                privilege,
            )
            raise Forbidden()
        return principal
