"""
One-time codes - generation and validation of numeric email challenges.

A code is accepted only while ``now <= expires_at``; the equality check
runs first so a wrong code is reported as invalid even after expiry.
"""

import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .exceptions import CodeExpired, InvalidCode
from .models import Account, OneTimeCode


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OtpGenerator:
    """Produces numeric codes of a fixed width with a validity window."""

    digits: int = 6
    ttl_seconds: int = 600
    clock: Callable[[], datetime] = field(default=utc_now)

    def generate(self) -> OneTimeCode:
        """
        Generate a cryptographically secure code and its expiry.

        Returns string to preserve leading zeros.
        """
        code = "".join(secrets.choice("0123456789") for _ in range(self.digits))
        return OneTimeCode(code=code, expires_at=self.clock() + timedelta(seconds=self.ttl_seconds))


def check_code(account: Account | None, code: str, now: datetime) -> Account:
    """
    Validate ``code`` against the account's outstanding challenge.

    Raises:
        InvalidCode: No account, no outstanding code, or mismatch
        CodeExpired: Code matched but ``now`` is past its expiry
    """
    if account is None or account.verification_code is None:
        raise InvalidCode()
    if not secrets.compare_digest(account.verification_code.encode(), code.encode()):
        raise InvalidCode()
    if account.code_expires_at is None or now > account.code_expires_at:
        raise CodeExpired()
    return account
