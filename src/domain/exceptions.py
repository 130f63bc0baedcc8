"""
Domain exceptions - Semantic error types for onboarding and access control.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each type to an HTTP status.
"""


class AccountError(Exception):
    """Base class for account domain errors."""

    pass


class ValidationFailed(AccountError):
    """Input is missing or malformed."""

    pass


# Conflicts


class EmailAlreadyRegistered(AccountError):
    """Email belongs to an account that cannot be overwritten."""

    pass


class AlreadyProcessed(AccountError):
    """Registration request is no longer pending."""

    pass


class RoleAlreadyExists(AccountError):
    """Role name is already taken."""

    pass


# Lookups


class AccountNotFound(AccountError):
    pass


class RoleNotFound(AccountError):
    pass


# Credentials and codes


class InvalidCredentials(AccountError):
    """Unknown email or wrong password; the two cases are not distinguished."""

    pass


class InvalidCode(AccountError):
    """No outstanding code matches the one supplied."""

    pass


class CodeExpired(AccountError):
    """Code matched but its expiry instant has passed."""

    pass


class InvalidRole(AccountError):
    pass


class NotApproved(AccountError):
    """Credentials are valid but the account is not approved."""

    pass


class VerificationRequired(AccountError):
    """Email ownership has not been confirmed yet."""

    pass


# Access control


class Unauthorized(AccountError):
    """No access token was presented."""

    pass


class InvalidToken(AccountError):
    """Token is malformed, expired or carries a bad signature."""

    pass


class Forbidden(AccountError):
    """Principal lacks the required role or privilege."""

    pass
