"""
Authentication domain service - credential checks and access tokens.

Tokens are stateless signed JWTs carrying the account id (``sub``), email
and role. They cannot be revoked before ``exp``; role changes take effect
when the holder signs in again.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import jwt

from .exceptions import InvalidCredentials, InvalidToken, NotApproved, VerificationRequired
from .models import Account, ApprovalStatus, Principal, Role, SignInResult
from .otp import utc_now
from .passwords import verify_password
from .ports import AccountRepository
from .registration import normalize_email

logger = logging.getLogger(__name__)


@dataclass
class TokenService:
    """Issues and decodes signed, time-bound access tokens."""

    secret_key: str
    algorithm: str = "HS256"
    expire_minutes: int = 240
    clock: Callable[[], datetime] = field(default=utc_now)

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self.expire_minutes * 60

    def issue(self, account: Account) -> str:
        issued_at = self.clock()
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Principal:
        """
        Verify signature and expiry, then extract the principal.

        Raises:
            InvalidToken: Malformed, expired, badly signed or missing claims
        """
        try:
            payload = jwt.decode(
                token.strip(),
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidToken(str(e)) from e

        role = Role.parse(payload.get("role", ""))
        try:
            account_id = int(payload["sub"])
        except (TypeError, ValueError):
            account_id = None
        if role is None or account_id is None or not payload.get("email"):
            raise InvalidToken("Token is missing identity claims")
        return Principal(account_id=account_id, email=payload["email"], role=role)


@dataclass
class Authenticator:
    repository: AccountRepository
    tokens: TokenService

    def sign_in(self, email: str, password: str) -> SignInResult:
        """
        Check credentials and issue an access token.

        Order of checks: credentials, then email verification, then
        approval. A correct password never yields a token for an account
        that is not APPROVED.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            VerificationRequired: A signup or reset code is still outstanding
            NotApproved: Account is not APPROVED
        """
        account = self.repository.get_by_email(normalize_email(email))

        # Always run bcrypt so unknown emails cost the same as wrong passwords
        password_valid = verify_password(password, account.password_hash if account else None)
        if account is None or not password_valid:
            raise InvalidCredentials()

        # A pending signup or password-reset code blocks sign-in until it is used
        if account.has_outstanding_code:
            raise VerificationRequired()
        if account.approval_status != ApprovalStatus.APPROVED:
            logger.info(
                "Sign-in refused for account %s in status %s",
                account.id,
                account.approval_status.value,
            )
            raise NotApproved()

        token = self.tokens.issue(account)
        logger.info("Account %s signed in", account.id)
        return SignInResult(token=token, expires_in=self.tokens.expires_in, account=account)
