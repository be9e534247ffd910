"""
auth/service.py -- The authentication operation surface.

AuthService composes the three collaborators:

  validation.py  -> gates raw input (no side effects on failure)
  store.py       -> uniqueness, persistence, lookups
  tokens.py      -> issue / verify / refresh

Operations:
  register(data)        -> token   ValidationError, ConflictError, StoreError
  login(data)           -> token   ValidationError, InvalidCredentials, StoreError
  verify_token(token)   -> claims  MissingToken, SignatureInvalid, Expired
  refresh_token(token)  -> token   MissingToken, SignatureInvalid, Expired,
                                   AccountNotFound, StoreError

Password hashing is CPU-bound and intentionally slow. Every method here is
synchronous; the HTTP layer calls them from plain ``def`` route handlers so
FastAPI runs them in its worker thread pool, off the event loop.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from auth.exceptions import ConflictError, InvalidCredentials
from auth.models import Account, TokenClaims
from auth.store import AccountStore
from auth.tokens import DEFAULT_BCRYPT_ROUNDS, TokenAuthority, dummy_hash, hash_password, verify_password
from auth.validation import validate_login, validate_registration

logger = logging.getLogger("authgate.auth")


class AuthService:
    def __init__(
        self,
        store: AccountStore,
        authority: TokenAuthority,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ) -> None:
        self.store = store
        self.authority = authority
        self.bcrypt_rounds = bcrypt_rounds

    def register(self, data: Mapping[str, Any] | None) -> str:
        """Create an account and return a token for it.

        The find_by_email() pre-check gives the common duplicate case a fast
        answer; the store's UNIQUE constraint still decides the race when two
        registrations for the same email arrive together.
        """
        form = validate_registration(data)

        if self.store.find_by_email(form.email) is not None:
            raise ConflictError("email_already_exists")

        hashed = hash_password(form.password, self.bcrypt_rounds)
        account = self.store.create(form.name, form.email, hashed)
        return self.authority.issue(account)

    def login(self, data: Mapping[str, Any] | None) -> str:
        """Return a token for valid credentials.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        form = validate_login(data)
        account = self.authenticate(form.email, form.password)
        if account is None:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()
        logger.info("Account %d logged in", account.id)
        return self.authority.issue(account)

    def authenticate(self, email: str, password: str) -> Account | None:
        """Check an email/password pair with timing equalization.

        Always runs bcrypt, whether or not the account exists:
        - Unknown email: bcrypt runs against the dummy hash (same cost).
        - Wrong password: bcrypt runs against the real hash.
        Do NOT return early before running bcrypt.
        """
        account = self.store.find_by_email(email)
        if account is None:
            verify_password(password, dummy_hash(self.bcrypt_rounds))
            return None
        if not verify_password(password, account.hashed_password):
            return None
        return account

    def verify_token(self, token: Any) -> TokenClaims:
        return self.authority.verify(token)

    def refresh_token(self, token: Any) -> str:
        return self.authority.refresh(token, self.store)

    def get_account(self, account_id: int) -> Account | None:
        """Plain lookup used by the profile read endpoints."""
        return self.store.find_by_id(account_id)
