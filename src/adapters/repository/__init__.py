"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountRepository, InMemoryRoleRepository
from .postgres import PostgresAccountRepository, PostgresRoleRepository, run_migrations

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryRoleRepository",
    "PostgresAccountRepository",
    "PostgresRoleRepository",
    "run_migrations",
]
