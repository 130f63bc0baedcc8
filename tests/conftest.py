"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for code expiry
- In-memory repositories and recording email sender
- Domain services wired together the way the API wires them
- A PostgreSQL pool for integration and adversarial tests
"""

from collections.abc import Callable, Generator
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryAccountRepository, InMemoryRoleRepository
from src.adapters.repository.postgres import PostgresRoleRepository
from src.domain.accounts import AccountService
from src.domain.approval import ApprovalService
from src.domain.authentication import Authenticator, TokenService
from src.domain.authorization import AuthorizationGate
from src.domain.otp import OtpGenerator
from src.domain.registration import RegistrationService
from src.domain.roles import RoleService
from tests.helpers import (
    TEST_BCRYPT_COST,
    TEST_SECRET,
    FrozenClock,
    open_test_pool,
    reset_database,
    sent_codes,
)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def roles() -> InMemoryRoleRepository:
    repository = InMemoryRoleRepository()
    RoleService(repository).seed_defaults()
    return repository


@pytest.fixture
def email_sender() -> Mock:
    return Mock()


@pytest.fixture
def registration(
    accounts: InMemoryAccountRepository, email_sender: Mock, clock: FrozenClock
) -> RegistrationService:
    return RegistrationService(
        repository=accounts,
        email_sender=email_sender,
        otp=OtpGenerator(digits=6, ttl_seconds=600, clock=clock),
        bcrypt_cost=TEST_BCRYPT_COST,
        clock=clock,
    )


@pytest.fixture
def approval(accounts: InMemoryAccountRepository, email_sender: Mock) -> ApprovalService:
    return ApprovalService(repository=accounts, email_sender=email_sender)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, expire_minutes=60)


@pytest.fixture
def authenticator(accounts: InMemoryAccountRepository, tokens: TokenService) -> Authenticator:
    return Authenticator(repository=accounts, tokens=tokens)


@pytest.fixture
def gate(tokens: TokenService, roles: InMemoryRoleRepository) -> AuthorizationGate:
    return AuthorizationGate(tokens=tokens, roles=roles)


@pytest.fixture
def storage() -> Mock:
    return Mock()


@pytest.fixture
def account_service(accounts: InMemoryAccountRepository, storage: Mock) -> AccountService:
    return AccountService(repository=accounts, storage=storage, bcrypt_cost=TEST_BCRYPT_COST)


@pytest.fixture
def onboard(
    registration: RegistrationService,
    approval: ApprovalService,
    email_sender: Mock,
) -> Callable[..., int]:
    """Register, verify and approve an account; returns its id."""

    def _onboard(email: str, password: str = "password123", role: str = "user") -> int:
        account = registration.register(email, password, "Test", "User")
        registration.verify_email(email, sent_codes(email_sender, email)[-1])
        approval.approve(account.id, role)
        return account.id

    return _onboard


@pytest.fixture(scope="session")
def db_pool() -> Generator[ConnectionPool, None, None]:
    """Connection pool for tests that need PostgreSQL (skipped when it is down)."""
    pool = open_test_pool()
    yield pool
    pool.close()


@pytest.fixture
def database(db_pool: ConnectionPool) -> ConnectionPool:
    """Empty database with the default roles seeded."""
    reset_database(db_pool)
    RoleService(PostgresRoleRepository(db_pool)).seed_defaults()
    return db_pool
