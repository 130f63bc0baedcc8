"""
Shared fixtures for adversarial tests.

Provides PostgreSQL-backed repositories and services for the race
condition and timing tests. Tests are skipped when PostgreSQL is down.
"""

from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository
from src.domain.approval import ApprovalService
from src.domain.registration import RegistrationService
from tests.helpers import TEST_BCRYPT_COST, sent_codes


@pytest.fixture
def repository(database: ConnectionPool) -> PostgresAccountRepository:
    """Create repository instance for each test."""
    return PostgresAccountRepository(database)


@pytest.fixture
def pg_registration(
    repository: PostgresAccountRepository, email_sender: Mock
) -> RegistrationService:
    return RegistrationService(
        repository=repository, email_sender=email_sender, bcrypt_cost=TEST_BCRYPT_COST
    )


@pytest.fixture
def pg_approval(repository: PostgresAccountRepository, email_sender: Mock) -> ApprovalService:
    return ApprovalService(repository=repository, email_sender=email_sender)


@pytest.fixture
def pending_account(pg_registration: RegistrationService, email_sender: Mock) -> int:
    """A verified account awaiting review; returns its id."""
    account = pg_registration.register("target@example.com", "password123", "Target", "User")
    code = sent_codes(email_sender, "target@example.com")[-1]
    pg_registration.verify_email("target@example.com", code)
    return account.id
