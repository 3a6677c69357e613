"""Database repository for account data."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from psycopg import errors, sql
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from schemas import SubscriptionTier

from .domain.account import Account
from .domain.contracts import CreateAccountInput
from .domain.errors import ConflictError

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    avatar_url TEXT NOT NULL,
    subscription TEXT NOT NULL DEFAULT 'starter',
    token TEXT,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
)
"""

_COLUMNS = "account_id, email, password_hash, avatar_url, subscription, token, created_at"

UPDATABLE_FIELDS = frozenset({"password_hash", "avatar_url", "subscription", "token"})


class AccountRepository:
    """Postgres-backed account persistence."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def ensure_schema(self) -> None:
        """Create the accounts table when it does not exist yet."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
                conn.commit()

    def find_by_email(self, email: str) -> Account | None:
        """Exact, case-sensitive lookup by email."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM accounts WHERE email = %s",
            (email,),
        )

    def find_by_id(self, account_id: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM accounts WHERE account_id = %s",
            (account_id,),
        )

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Persist a new account; a taken email raises ``ConflictError``."""
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (account_id, email, password_hash, avatar_url, subscription, token, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, NULL, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            account_id,
                            payload.email,
                            payload.password_hash,
                            payload.avatar_url,
                            SubscriptionTier(payload.subscription).value,
                            now,
                            now,
                        ),
                    )
                    record = cur.fetchone()
                    conn.commit()
        except errors.UniqueViolation as exc:
            raise ConflictError("Email in Use") from exc
        return self._map_record(record)

    def update_by_id(self, account_id: str, **fields: Any) -> Account | None:
        """Apply a partial update in a single statement and return the new row.

        Only columns in ``UPDATABLE_FIELDS`` may be written. Returns ``None``
        when no account has the given id.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
        if not fields:
            return self.find_by_id(account_id)

        values: list[Any] = []
        assignments = []
        for column, value in fields.items():
            if isinstance(value, SubscriptionTier):
                value = value.value
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            values.append(value)
        values.extend([datetime.now(timezone.utc), account_id])

        query = sql.SQL(
            "UPDATE accounts SET {assignments}, updated_at = %s WHERE account_id = %s RETURNING {columns}"
        ).format(
            assignments=sql.SQL(", ").join(assignments),
            columns=sql.SQL(_COLUMNS),
        )
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, values)
                row = cur.fetchone()
                conn.commit()
        if not row:
            return None
        return self._map_record(row)

    def _fetch_one(self, query: str, params: tuple) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, params)
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            email=row[1],
            password_hash=row[2],
            avatar_url=row[3],
            subscription=SubscriptionTier(row[4]),
            token=row[5],
            created_at=row[6],
        )
