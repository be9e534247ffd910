"""
tests/conftest.py -- Shared test fixtures for authgate.

This module provides:
  - store / authority / service: unit-level collaborators on a private
    in-memory SQLite database
  - make_clock(): a settable clock for expiry tests
  - api_client: TestClient wired to an isolated store via a patched lifespan

Design: The API fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI shares one in-memory instance across all
connections in the same process.

bcrypt runs at cost 4 (its minimum) so the suite stays fast. The cost factor
does not change any behaviour under test.

The DEBUG env var must be set before any api/core import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import AccountStore
from auth.tokens import TokenAuthority

TEST_SECRET = "test-secret-key-with-at-least-32-characters"
TEST_ROUNDS = 4

VALID_PASSWORD = "Abcdefghijk1!"


class MutableClock:
    """Callable clock whose current time can be moved by tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def make_clock() -> Callable[..., MutableClock]:
    return MutableClock


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def authority() -> TokenAuthority:
    return TokenAuthority(secret_key=TEST_SECRET)


@pytest.fixture
def service(store: AccountStore, authority: TokenAuthority) -> AuthService:
    return AuthService(store=store, authority=authority, bcrypt_rounds=TEST_ROUNDS)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test service into app.state so TestClient routes see
    an isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    One database per test module: the module name is part of the shared-memory
    URI so modules never see each other's accounts.
    """
    db_name = request.module.__name__.replace(".", "_")
    api_store = AccountStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    api_service = AuthService(
        store=api_store,
        authority=TokenAuthority(secret_key=TEST_SECRET),
        bcrypt_rounds=TEST_ROUNDS,
    )

    app.router.lifespan_context = _patch_lifespan(api_service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, api_service

    api_store.close()
