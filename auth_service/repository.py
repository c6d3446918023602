"""Database repository for account and session data."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, AccountStatus, Role, resolve_save_fields
from .domain.contracts import NewAccount
from .domain.validation import validate_account_fields
from .errors import ConflictError
from .security.passwords import DEFAULT_ROUNDS, hash_password, verify_password

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    account_id UUID PRIMARY KEY,
    email TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    roles TEXT[] NOT NULL,
    status TEXT NOT NULL DEFAULT 'active',
    refresh_token TEXT,
    last_login_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS accounts_email_key ON accounts (email);
"""

_BASE_COLUMNS = "account_id::text, email, first_name, last_name, roles, status, last_login_at, created_at"


@dataclass(slots=True)
class AccountRecord:
    """Row projection used when mapping database tuples to domain aggregates."""

    account_id: str
    email: str
    first_name: str
    last_name: str
    roles: list[str]
    status: str
    last_login_at: datetime | None
    created_at: datetime
    secret: str | None = None

    def to_domain(self, *, secret_field: str | None = None) -> Account:
        account = Account(
            account_id=self.account_id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            roles=[Role(role) for role in self.roles],
            status=AccountStatus(self.status),
            last_login_at=self.last_login_at,
            created_at=self.created_at,
        )
        if secret_field == "password_hash":
            account.password_hash = self.secret
        elif secret_field == "refresh_token":
            account.refresh_token = self.secret
        return account


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


class AccountRepository:
    """Postgres-backed account persistence.

    Email uniqueness is enforced by the ``accounts_email_key`` index, so two
    racing registrations cannot both succeed.
    """

    def __init__(self, pool: ConnectionPool, *, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool
        self._bcrypt_rounds = bcrypt_rounds

    def ensure_schema(self) -> None:
        """Create the ``accounts`` table and its indexes when missing."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()

    def _fetch_one(self, where_sql: str, value: str, secret_column: str | None) -> AccountRecord | None:
        columns = _BASE_COLUMNS + (f", {secret_column}" if secret_column else "")
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(f"SELECT {columns} FROM accounts WHERE {where_sql}", (value,))
                row = cur.fetchone()
        if not row:
            return None
        return AccountRecord(*row)

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None:
        """Case-insensitive lookup; the password hash is only loaded on request."""
        secret_column = "password_hash" if include_password else None
        record = self._fetch_one("email = %s", email.strip().lower(), secret_column)
        return record.to_domain(secret_field=secret_column) if record else None

    def find_by_id(self, account_id: str, *, include_refresh_token: bool = False) -> Account | None:
        """Fetch an account by identifier or return ``None``."""
        if not _is_uuid(account_id):
            return None
        secret_column = "refresh_token" if include_refresh_token else None
        record = self._fetch_one("account_id = %s", account_id, secret_column)
        return record.to_domain(secret_field=secret_column) if record else None

    def create(self, payload: NewAccount) -> Account:
        """Hash the password and insert the account in a single statement."""
        email = payload.email.strip().lower()
        validate_account_fields(
            email=email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            roles=payload.roles,
            password=payload.password,
        )
        now = datetime.now(timezone.utc)
        password_hash = hash_password(payload.password, rounds=self._bcrypt_rounds)

        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO accounts (
                            account_id, email, password_hash, first_name, last_name, roles,
                            status, refresh_token, last_login_at, created_at, updated_at
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_BASE_COLUMNS}
                        """,
                        (
                            payload.account_id,
                            email,
                            password_hash,
                            payload.first_name,
                            payload.last_name,
                            [role.value for role in payload.roles],
                            payload.status.value,
                            payload.refresh_token,
                            payload.last_login_at,
                            now,
                            now,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            logger.info("rejected duplicate registration for %s", email)
            raise ConflictError("User with this email already exists") from exc

        account = AccountRecord(*row).to_domain()
        account.refresh_token = payload.refresh_token
        return account

    def save(
        self,
        account: Account,
        *,
        skip_validation: bool = False,
        fields: tuple[str, ...] | None = None,
    ) -> Account:
        """Write the selected mutable columns of ``account``.

        Only the named ``fields`` are updated, so columns changed by another
        writer since ``account`` was read are left alone. ``skip_validation``
        without ``fields`` writes just the session slot.
        """
        columns = resolve_save_fields(fields, skip_validation=skip_validation)
        if not skip_validation:
            validate_account_fields(
                email=account.email,
                first_name=account.first_name,
                last_name=account.last_name,
                roles=account.roles,
            )
        values = {
            "first_name": account.first_name,
            "last_name": account.last_name,
            "roles": [role.value for role in account.roles],
            "status": account.status.value,
            "refresh_token": account.refresh_token,
            "last_login_at": account.last_login_at,
        }
        assignments = ", ".join(f"{column} = %s" for column in columns)
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE accounts SET {assignments}, updated_at = NOW() WHERE account_id = %s",
                    (*(values[column] for column in columns), account.account_id),
                )
            conn.commit()
        return account

    def verify_password(self, account: Account, plaintext: str) -> bool:
        """Compare ``plaintext`` with the account's loaded password hash."""
        if account.password_hash is None:
            raise ValueError("password hash not loaded; use find_by_email(include_password=True)")
        return verify_password(plaintext, account.password_hash)
