"""
Domain layer - Pure business logic with zero web or database framework imports.

This package contains the onboarding state machine, the authenticator and
the authorization gate. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .accounts import AccountService
from .approval import ApprovalService
from .authentication import Authenticator, TokenService
from .authorization import AuthorizationGate
from .exceptions import AccountError
from .models import Account, AccountCheck, ApprovalStatus, Principal, Role, RoleRecord
from .otp import OtpGenerator
from .ports import AccountRepository, EmailSender, ObjectStorage, RoleRepository
from .registration import RegistrationService
from .roles import RoleService

__all__ = [
    "Account",
    "AccountCheck",
    "AccountError",
    "AccountRepository",
    "AccountService",
    "ApprovalService",
    "ApprovalStatus",
    "Authenticator",
    "AuthorizationGate",
    "EmailSender",
    "ObjectStorage",
    "OtpGenerator",
    "Principal",
    "RegistrationService",
    "Role",
    "RoleRecord",
    "RoleRepository",
    "RoleService",
    "TokenService",
]
