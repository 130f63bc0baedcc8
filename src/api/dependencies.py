"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes, plus the
authentication and role/privilege guards built on the AuthorizationGate.
"""

from collections.abc import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, PostgresRoleRepository
from src.adapters.smtp import ConsoleEmailSender, SmtpEmailSender
from src.adapters.storage import LocalObjectStorage, S3ObjectStorage
from src.config.settings import Settings, get_settings
from src.domain.accounts import AccountService
from src.domain.approval import ApprovalService
from src.domain.authentication import Authenticator, TokenService
from src.domain.authorization import AuthorizationGate
from src.domain.models import ADMIN_ROLES, Principal, Role
from src.domain.otp import OtpGenerator
from src.domain.ports import AccountRepository, EmailSender, ObjectStorage, RoleRepository
from src.domain.registration import RegistrationService
from src.domain.roles import RoleService


def build_email_sender(settings: Settings) -> EmailSender:
    """Email sender for the configured backend; created once at startup."""
    if settings.email_backend == "smtp":
        return SmtpEmailSender(
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleEmailSender()


def build_object_storage(settings: Settings) -> ObjectStorage:
    """Profile picture storage for the configured backend; created once at startup."""
    if settings.storage_backend == "s3":
        return S3ObjectStorage(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            prefix=settings.s3_prefix,
        )
    return LocalObjectStorage(settings.storage_local_dir, settings.storage_public_url)


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_account_repository(
    request: Request, settings: Settings = Depends(get_settings)
) -> AccountRepository:
    """Create account repository with connection pool from app state."""
    return PostgresAccountRepository(get_pool(request), settings.account_number_base)


def get_role_repository(request: Request) -> RoleRepository:
    """Create role repository with connection pool from app state."""
    return PostgresRoleRepository(get_pool(request))


def get_email_sender(request: Request) -> EmailSender:
    """Get the email sender built at startup."""
    return request.app.state.email_sender


def get_object_storage(request: Request) -> ObjectStorage:
    """Get the object storage built at startup."""
    return request.app.state.storage


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.jwt_expire_minutes,
    )


def get_registration_service(
    repository: AccountRepository = Depends(get_account_repository),
    email_sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repository, email sender and onboarding settings.
    """
    return RegistrationService(
        repository=repository,
        email_sender=email_sender,
        otp=OtpGenerator(digits=settings.otp_digits, ttl_seconds=settings.otp_ttl_seconds),
        require_admin_approval=settings.require_admin_approval,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_approval_service(
    repository: AccountRepository = Depends(get_account_repository),
    email_sender: EmailSender = Depends(get_email_sender),
) -> ApprovalService:
    return ApprovalService(repository=repository, email_sender=email_sender)


def get_authenticator(
    repository: AccountRepository = Depends(get_account_repository),
    tokens: TokenService = Depends(get_token_service),
) -> Authenticator:
    return Authenticator(repository=repository, tokens=tokens)


def get_account_service(
    repository: AccountRepository = Depends(get_account_repository),
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(repository=repository, storage=storage, bcrypt_cost=settings.bcrypt_cost)


def get_role_service(repository: RoleRepository = Depends(get_role_repository)) -> RoleService:
    return RoleService(repository=repository)


def get_authorization_gate(
    tokens: TokenService = Depends(get_token_service),
    roles: RoleRepository = Depends(get_role_repository),
) -> AuthorizationGate:
    return AuthorizationGate(tokens=tokens, roles=roles)


# Bearer scheme for OpenAPI; a missing or non-bearer header yields None
http_bearer = HTTPBearer(auto_error=False)


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    gate: AuthorizationGate = Depends(get_authorization_gate),
) -> Principal:
    """
    Authenticate the request's bearer token.

    Raises Unauthorized (401) without a token and InvalidToken (400) for a
    bad one; both are mapped by the exception handlers.
    """
    return gate.authenticate(credentials.credentials if credentials else None)


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Dependency allowing only principals whose token role is in ``roles``."""

    def dependency(
        principal: Principal = Depends(get_principal),
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> Principal:
        return gate.require_role(principal, roles)

    return dependency


def require_privilege(privilege: str) -> Callable[..., Principal]:
    """Dependency allowing only principals whose role grants ``privilege``."""

    def dependency(
        principal: Principal = Depends(get_principal),
        gate: AuthorizationGate = Depends(get_authorization_gate),
    ) -> Principal:
        return gate.require_privilege(principal, privilege)

    return dependency


# Shared instance so FastAPI resolves it once per request
require_admin = require_roles(*sorted(ADMIN_ROLES, key=lambda role: role.value))
