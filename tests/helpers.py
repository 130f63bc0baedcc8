"""Test helpers shared across unit, integration and adversarial suites."""

import re
from datetime import datetime, timedelta
from typing import Any
from unittest.mock import MagicMock, Mock

import pytest
from fastapi import FastAPI
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.api.dependencies import (
    get_account_repository,
    get_email_sender,
    get_object_storage,
    get_role_repository,
)
from src.api.errors import register_exception_handlers
from src.api.v1 import router
from src.config.settings import Settings, get_settings
from src.domain.ports import AccountRepository, EmailSender, ObjectStorage, RoleRepository


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def sent_codes(sender: Mock, email: str) -> list[str]:
    """All numeric codes mailed to ``email``, oldest first."""
    codes = []
    for call in sender.send_email.call_args_list:
        recipient, _subject, body = call.args
        if recipient == email:
            match = re.search(r"code is: (\d+)", body)
            if match:
                codes.append(match.group(1))
    return codes


def bearer(token: str) -> dict[str, str]:
    """Authorization header for an access token."""
    return {"Authorization": f"Bearer {token}"}


# Lowest bcrypt cost keeps the suite fast
TEST_BCRYPT_COST = 4
TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"


def build_app(
    accounts: AccountRepository,
    roles: RoleRepository,
    email_sender: EmailSender,
    storage: ObjectStorage,
    **settings: Any,
) -> FastAPI:
    """
    API application wired to the given adapters instead of PostgreSQL.

    Keyword arguments override the test settings (e.g. ``require_admin_approval``).
    """
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(router, prefix="/v1")
    app.state.pool = MagicMock()

    test_settings = Settings(
        _env_file=None,
        bcrypt_cost=TEST_BCRYPT_COST,
        jwt_secret_key=TEST_SECRET,
        **settings,
    )
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_account_repository] = lambda: accounts
    app.dependency_overrides[get_role_repository] = lambda: roles
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_object_storage] = lambda: storage
    return app


def open_test_pool(max_size: int = 10) -> ConnectionPool:
    """Pool on the configured database with migrations applied; skips if unreachable."""
    pool = ConnectionPool(
        conninfo=get_settings().database_url,
        min_size=1,
        max_size=max_size,
        open=False,
    )
    try:
        pool.open(wait=True, timeout=5)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    return pool


def reset_database(pool: ConnectionPool) -> None:
    """Empty both tables and restart their id sequences."""
    with pool.connection() as conn:
        conn.execute("TRUNCATE accounts, roles RESTART IDENTITY")
        conn.commit()
