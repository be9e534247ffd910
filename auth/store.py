"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Service and route code never touches SQL
directly.

Uniqueness:
  email and username each carry a UNIQUE constraint. create() is a single
  INSERT and relies on the database to reject duplicates, so two concurrent
  registrations for the same email cannot both succeed even if both passed
  an application-level find_by_email() pre-check. The resulting
  IntegrityError is translated into ConflictError here.

Failures:
  IntegrityError       -> ConflictError (email_already_exists / username_already_exists)
  any SQLAlchemyError  -> StoreError, original exception chained as __cause__

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.exceptions import ConflictError, StoreError
from auth.models import Account

logger = logging.getLogger("authgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account records.

    Usage:
        store = AccountStore("sqlite:///:memory:")
        account = store.create("alice_w", "alice@example.com", hash_password("..."))
        store.find_by_email("alice@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError("account store unavailable") from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email. Returns None if not found."""
        return self._fetch_one(_accounts.c.email == email)

    def find_by_id(self, account_id: int) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        return self._fetch_one(_accounts.c.id == account_id)

    def _fetch_one(self, clause) -> Account | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_accounts.select().where(clause)).fetchone()
        except SQLAlchemyError as exc:
            raise StoreError("account lookup failed") from exc
        return _row_to_account(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, username: str, email: str, hashed_password: str) -> Account:
        """Insert a new account and return it with its assigned id.

        Raises ConflictError if the email or username is already taken. The
        check is the UNIQUE constraint itself, not a prior SELECT.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        email=email,
                        username=username,
                        hashed_password=hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise ConflictError(self._conflict_code(email)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("account insert failed") from exc

        account_id = result.inserted_primary_key[0]
        logger.info("Account %d created", account_id)
        return Account(
            id=account_id,
            email=email,
            username=username,
            hashed_password=hashed_password,
            created_at=created_at,
        )

    def _conflict_code(self, email: str) -> str:
        # Both columns are unique; the email check wins when both collide.
        if self.find_by_email(email) is not None:
            return "email_already_exists"
        return "username_already_exists"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Account store ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
