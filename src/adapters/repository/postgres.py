"""
PostgreSQL repository adapters - Implement the AccountRepository and
RoleRepository protocols.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
Every lifecycle transition is a single conditional statement, so racing
requests resolve inside the database instead of in application code:

1. **Re-registration**: ``INSERT ... ON CONFLICT (email) DO UPDATE ... WHERE``
   overwrites only UNVERIFIED or expired rows. The UNIQUE constraint on
   email makes duplicate accounts impossible.

2. **Status transitions**: ``UPDATE ... WHERE id = %s AND approval_status = %s``
   keyed on the expected prior status. Of two concurrent approvals exactly
   one updates a row; the other sees rowcount 0.

3. **Code consumption**: verification and password reset also match the
   stored code, so a code can be used once even under concurrent requests.

4. **Account numbers**: assigned as ``MAX(account_no) + 1`` while holding a
   transaction-scoped advisory lock, which serializes numbering without
   locking the table for readers.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import EmailAlreadyRegistered, RoleAlreadyExists
from src.domain.models import Account, ApprovalStatus, NewAccount, Role, RoleRecord

logger = logging.getLogger(__name__)

# Arbitrary constant identifying the account-number advisory lock
_ACCOUNT_NO_LOCK_KEY = 7_310_001

_ACCOUNT_COLUMNS = (
    "id, account_no, name, surname, email, password_hash, birthdate, approval_status, "
    "role, verification_code, code_expires_at, is_verified, expired, profile_picture, "
    "picture_ref"
)

# Columns an update() call may touch
_UPDATABLE_COLUMNS = frozenset(
    {
        "name",
        "surname",
        "email",
        "birthdate",
        "password_hash",
        "role",
        "expired",
        "profile_picture",
        "picture_ref",
    }
)


def _row_to_account(row: dict[str, Any]) -> Account:
    return Account(
        id=row["id"],
        account_no=row["account_no"],
        name=row["name"],
        surname=row["surname"],
        email=row["email"],
        password_hash=row["password_hash"],
        birthdate=row["birthdate"],
        approval_status=ApprovalStatus(row["approval_status"]),
        role=Role(row["role"]),
        verification_code=row["verification_code"],
        code_expires_at=row["code_expires_at"],
        is_verified=row["is_verified"],
        expired=row["expired"],
        profile_picture=row["profile_picture"],
        picture_ref=row["picture_ref"],
    )


def _row_to_role(row: dict[str, Any]) -> RoleRecord:
    return RoleRecord(id=row["id"], name=row["name"], privileges=list(row["privileges"]))


def _db_value(value: Any) -> Any:
    """Unwrap domain enums to their stored string form."""
    if isinstance(value, (ApprovalStatus, Role)):
        return value.value
    return value


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool, account_number_base: int = 1000) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            account_number_base: Account number given to the first account
        """
        self._pool = pool
        self._account_number_base = account_number_base

    def _fetch_one(self, query: str, params: tuple) -> Account | None:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None

    def _fetch_all(self, query: str, params: tuple = ()) -> list[Account]:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [_row_to_account(row) for row in rows]

    def _execute(self, query: str, params: tuple) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, params)
            conn.commit()
            return cursor.rowcount

    def get_by_id(self, account_id: int) -> Account | None:
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s", (account_id,)
        )

    def get_by_email(self, email: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s", (email,)
        )

    def list_all(self) -> list[Account]:
        return self._fetch_all(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts ORDER BY id")

    def list_by_status(self, status: ApprovalStatus) -> list[Account]:
        return self._fetch_all(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE approval_status = %s ORDER BY id",
            (status.value,),
        )

    def list_by_roles(self, roles: frozenset[Role]) -> list[Account]:
        return self._fetch_all(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE role = ANY(%s) ORDER BY id",
            ([role.value for role in roles],),
        )

    def claim_registration(self, account: NewAccount) -> Account | None:
        """
        Atomically create an account or overwrite a claimable one.

        Uses INSERT ... ON CONFLICT DO UPDATE WHERE for atomic upsert.
        The WHERE clause ensures only UNVERIFIED rows or APPROVED rows marked
        expired are overwritten; id and account number are kept on overwrite
        while the profile picture is dropped.

        Returns:
            The stored account, or None if the email is held by a pending,
            rejected or live approved account
        """
        query = f"""
            INSERT INTO accounts (
                account_no, email, password_hash, name, surname, birthdate,
                approval_status, role, verification_code, code_expires_at, is_verified
            )
            VALUES (
                (SELECT COALESCE(MAX(account_no) + 1, %s) FROM accounts),
                %s, %s, %s, %s, %s, 'unverified', 'user', %s, %s, FALSE
            )
            ON CONFLICT (email) DO UPDATE
            SET password_hash = EXCLUDED.password_hash,
                name = EXCLUDED.name,
                surname = EXCLUDED.surname,
                birthdate = EXCLUDED.birthdate,
                approval_status = 'unverified',
                role = 'user',
                verification_code = EXCLUDED.verification_code,
                code_expires_at = EXCLUDED.code_expires_at,
                is_verified = FALSE,
                expired = FALSE,
                profile_picture = '',
                picture_ref = ''
            WHERE accounts.approval_status = 'unverified'
               OR (accounts.approval_status = 'approved' AND accounts.expired)
            RETURNING {_ACCOUNT_COLUMNS}
        """
        params = (
            self._account_number_base,
            account.email,
            account.password_hash,
            account.name,
            account.surname,
            account.birthdate,
            account.verification_code,
            account.code_expires_at,
        )

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute("SELECT pg_advisory_xact_lock(%s)", (_ACCOUNT_NO_LOCK_KEY,))
            cursor.execute(query, params)
            row = cursor.fetchone()
            conn.commit()

        # No row returned: conflict hit a row the WHERE clause protects
        return _row_to_account(row) if row is not None else None

    def create(self, account: NewAccount) -> Account:
        query = f"""
            INSERT INTO accounts (
                account_no, email, password_hash, name, surname, birthdate,
                approval_status, role, verification_code, code_expires_at, is_verified
            )
            VALUES (
                (SELECT COALESCE(MAX(account_no) + 1, %s) FROM accounts),
                %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
            )
            RETURNING {_ACCOUNT_COLUMNS}
        """
        params = (
            self._account_number_base,
            account.email,
            account.password_hash,
            account.name,
            account.surname,
            account.birthdate,
            account.approval_status.value,
            account.role.value,
            account.verification_code,
            account.code_expires_at,
            account.is_verified,
        )
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute("SELECT pg_advisory_xact_lock(%s)", (_ACCOUNT_NO_LOCK_KEY,))
                cursor.execute(query, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise EmailAlreadyRegistered(account.email) from e
        return _row_to_account(row)

    def set_verification_code(self, email: str, code: str, expires_at: datetime) -> bool:
        rowcount = self._execute(
            """
            UPDATE accounts
            SET verification_code = %s, code_expires_at = %s
            WHERE email = %s
            """,
            (code, expires_at, email),
        )
        return rowcount == 1

    def complete_verification(
        self, account_id: int, code: str, new_status: ApprovalStatus
    ) -> bool:
        rowcount = self._execute(
            """
            UPDATE accounts
            SET approval_status = %s,
                is_verified = TRUE,
                verification_code = NULL,
                code_expires_at = NULL
            WHERE id = %s AND approval_status = 'unverified' AND verification_code = %s
            """,
            (new_status.value, account_id, code),
        )
        return rowcount == 1

    def transition_status(
        self,
        account_id: int,
        expected: ApprovalStatus,
        new_status: ApprovalStatus,
        role: Role | None = None,
    ) -> bool:
        rowcount = self._execute(
            """
            UPDATE accounts
            SET approval_status = %s, role = COALESCE(%s, role)
            WHERE id = %s AND approval_status = %s
            """,
            (new_status.value, _db_value(role), account_id, expected.value),
        )
        return rowcount == 1

    def reset_password(self, account_id: int, code: str, password_hash: str) -> bool:
        rowcount = self._execute(
            """
            UPDATE accounts
            SET password_hash = %s, verification_code = NULL, code_expires_at = NULL
            WHERE id = %s AND verification_code = %s
            """,
            (password_hash, account_id, code),
        )
        return rowcount == 1

    def update(self, account_id: int, changes: dict[str, Any]) -> Account | None:
        unknown = set(changes) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update column(s): {', '.join(sorted(unknown))}")
        if not changes:
            return self.get_by_id(account_id)

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
        )
        query = sql.SQL("UPDATE accounts SET {} WHERE id = %s RETURNING {}").format(
            assignments, sql.SQL(_ACCOUNT_COLUMNS)
        )
        params = (*(_db_value(value) for value in changes.values()), account_id)

        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                conn.commit()
        except errors.UniqueViolation as e:
            raise EmailAlreadyRegistered(changes.get("email")) from e
        return _row_to_account(row) if row is not None else None

    def delete(self, account_id: int) -> bool:
        return self._execute("DELETE FROM accounts WHERE id = %s", (account_id,)) == 1

    def delete_unapproved(self, account_id: int) -> bool:
        rowcount = self._execute(
            "DELETE FROM accounts WHERE id = %s AND approval_status <> 'approved'",
            (account_id,),
        )
        return rowcount == 1


class PostgresRoleRepository:
    """Implements RoleRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def _fetch(self, query: str, params: tuple = ()) -> list[RoleRecord]:
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, params)
            rows = cursor.fetchall()
        return [_row_to_role(row) for row in rows]

    def get_by_id(self, role_id: int) -> RoleRecord | None:
        roles = self._fetch("SELECT id, name, privileges FROM roles WHERE id = %s", (role_id,))
        return roles[0] if roles else None

    def get_by_name(self, name: str) -> RoleRecord | None:
        roles = self._fetch("SELECT id, name, privileges FROM roles WHERE name = %s", (name,))
        return roles[0] if roles else None

    def list_all(self) -> list[RoleRecord]:
        return self._fetch("SELECT id, name, privileges FROM roles ORDER BY id")

    def create(self, name: str, privileges: list[str]) -> RoleRecord:
        try:
            roles = self._fetch(
                """
                INSERT INTO roles (name, privileges) VALUES (%s, %s::text[])
                RETURNING id, name, privileges
                """,
                (name, privileges),
            )
        except errors.UniqueViolation as e:
            raise RoleAlreadyExists(name) from e
        return roles[0]

    def update(
        self, role_id: int, name: str | None, privileges: list[str] | None
    ) -> RoleRecord | None:
        try:
            roles = self._fetch(
                """
                UPDATE roles
                SET name = COALESCE(%s, name),
                    privileges = COALESCE(%s::text[], privileges)
                WHERE id = %s
                RETURNING id, name, privileges
                """,
                (name, privileges, role_id),
            )
        except errors.UniqueViolation as e:
            raise RoleAlreadyExists(name) from e
        return roles[0] if roles else None

    def delete(self, role_id: int) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM roles WHERE id = %s", (role_id,))
            conn.commit()
            return cursor.rowcount == 1

    def create_if_missing(self, name: str, privileges: list[str]) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO roles (name, privileges) VALUES (%s, %s::text[])
                ON CONFLICT (name) DO NOTHING
                """,
                (name, privileges),
            )
            conn.commit()
            return cursor.rowcount == 1


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
