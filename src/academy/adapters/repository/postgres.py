"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
account port using psycopg3 with raw, parameterized SQL.

Verification tokens live inside the `metadata` JSONB column under
`verificationToken` / `verificationTokenExpires` (ISO-8601, UTC). Every
statement touches at most one account, addressed by primary key or by
the unique email.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from academy.domain.exceptions import EmailAlreadyRegistered, TransportError
from academy.domain.models import Account, Role

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_COLUMNS = "id, email, name, phone, role, email_verified, metadata, created_at, updated_at"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Downgrade driver errors to TransportError; details stay in the log."""
    try:
        yield
    except psycopg.Error as e:
        logger.error("Account store %s failed: %s", operation, e)
        raise TransportError() from e


def _to_account(row: dict[str, Any]) -> Account:
    return Account(
        id=str(row["id"]),
        email=row["email"],
        name=row["name"],
        role=Role(row["role"]),
        email_verified=bool(row["email_verified"]),
        phone=row["phone"],
        metadata=row["metadata"] or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_COLUMNS} FROM users WHERE email = %s"

        with (
            _store_errors("find_by_email"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _to_account(row) if row is not None else None

    def insert(
        self,
        email: str,
        name: str,
        role: str,
        phone: str | None,
        metadata: dict[str, Any],
    ) -> Account:
        """
        Insert a new unverified account.

        The UNIQUE constraint on email arbitrates concurrent signups:
        ON CONFLICT DO NOTHING returns no row for the loser.

        Raises:
            EmailAlreadyRegistered: If the email is already present
        """
        sql = f"""
            INSERT INTO users (email, name, phone, role, email_verified, metadata)
            VALUES (%s, %s, %s, %s, FALSE, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_COLUMNS}
        """

        with (
            _store_errors("insert"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            cursor.execute(sql, (email, name, phone, role, Jsonb(metadata)))
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            raise EmailAlreadyRegistered(email)
        return _to_account(row)

    def find_by_verification_token(
        self, token: str, email: str | None = None
    ) -> list[Account]:
        sql = f"""
            SELECT {_COLUMNS} FROM users
            WHERE email_verified = FALSE
              AND metadata->>'verificationToken' = %s
        """
        params: tuple[Any, ...] = (token,)
        if email is not None:
            sql += " AND email = %s"
            params = (token, email)

        with (
            _store_errors("find_by_verification_token"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        return [_to_account(row) for row in rows]

    def mark_verified(self, account_id: str, verified_at: datetime) -> Account | None:
        """
        Flip email_verified to true, stamp verifiedAt and drop the token.

        The `email_verified = FALSE` guard keeps the transition one-way:
        a second call for the same account updates nothing and returns None.
        """
        sql = f"""
            UPDATE users
            SET email_verified = TRUE,
                updated_at = NOW(),
                metadata = (COALESCE(metadata, '{{}}'::jsonb)
                            - 'verificationToken'
                            - 'verificationTokenExpires')
                           || jsonb_build_object('verifiedAt', %s::text)
            WHERE id = %s::uuid AND email_verified = FALSE
            RETURNING {_COLUMNS}
        """

        with (
            _store_errors("mark_verified"),
            self._pool.connection() as conn,
            conn.cursor(row_factory=dict_row) as cursor,
        ):
            cursor.execute(sql, (verified_at.isoformat(), account_id))
            row = cursor.fetchone()
            conn.commit()
        return _to_account(row) if row is not None else None

    def store_verification_token(
        self, email: str, token: str, expires_at: datetime
    ) -> bool:
        sql = """
            UPDATE users
            SET metadata = COALESCE(metadata, '{}'::jsonb) || %s,
                updated_at = NOW()
            WHERE email = %s AND email_verified = FALSE
        """
        token_fields = {
            "verificationToken": token,
            "verificationTokenExpires": expires_at.isoformat(),
        }

        with (
            _store_errors("store_verification_token"),
            self._pool.connection() as conn,
            conn.cursor() as cursor,
        ):
            cursor.execute(sql, (Jsonb(token_fields), email))
            conn.commit()
            return cursor.rowcount == 1


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files bundled with this package.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    if not MIGRATIONS_DIR.exists():
        logger.warning("Migrations directory not found: %s", MIGRATIONS_DIR)
        return

    sql_files = sorted(MIGRATIONS_DIR.glob("*.sql"))

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
