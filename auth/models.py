"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the token
authority do the work; these only own the domain shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered identity.

    username is the "name" submitted at registration. email and username are
    each unique across all accounts; the store enforces both with UNIQUE
    constraints.

    hashed_password is always a bcrypt hash -- the raw password is never
    persisted. created_at is an ISO 8601 UTC string set once by the store.
    """

    email: str
    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Identity fields carried inside a signed token.

    id/name/email are a snapshot of the Account at issue time. Later account
    changes are not reflected until the token is refreshed.
    """

    id: int
    name: str
    email: str
    issued_at: datetime
    expires_at: datetime
