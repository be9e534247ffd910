"""
tests/test_service.py -- Unit tests for auth/service.py.

Covers:
  - Register succeeds once per email; the second attempt conflicts
  - Register stores a bcrypt hash, never the raw password
  - Validation failures touch neither the store nor the hasher
  - The store's uniqueness constraint decides the race when the pre-check passes
  - Login: success, wrong password and unknown email produce identical errors
  - Login runs bcrypt even for unknown emails (timing equalization)
  - verify_token / refresh_token delegate to the token authority
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from auth.exceptions import (
    AccountNotFound,
    ConflictError,
    InvalidCredentials,
    MissingToken,
    StoreError,
    ValidationError,
)
from auth.models import Account
from auth.service import AuthService
from auth.tokens import TokenAuthority

PASSWORD = "Abcdefghijk1!"
REGISTRATION = {"name": "alice_w", "email": "alice@example.com", "password": PASSWORD}


class TestRegister:
    def test_register_returns_token_for_new_account(self, service: AuthService) -> None:
        claims = service.verify_token(service.register(REGISTRATION))
        assert claims.name == "alice_w"
        assert claims.email == "alice@example.com"
        assert service.store.find_by_id(claims.id) is not None

    def test_second_register_same_email_conflicts(self, service: AuthService) -> None:
        service.register(REGISTRATION)
        with pytest.raises(ConflictError) as exc_info:
            service.register({**REGISTRATION, "name": "alice_two"})
        assert exc_info.value.code == "email_already_exists"

    def test_second_register_same_username_conflicts(self, service: AuthService) -> None:
        service.register(REGISTRATION)
        with pytest.raises(ConflictError) as exc_info:
            service.register({**REGISTRATION, "email": "other@example.com"})
        assert exc_info.value.code == "username_already_exists"

    def test_username_stored_without_padding(self, service: AuthService) -> None:
        service.register({**REGISTRATION, "name": "  alice_w  "})
        assert service.store.find_by_email("alice@example.com").username == "alice_w"

    def test_password_is_hashed(self, service: AuthService) -> None:
        service.register(REGISTRATION)
        account = service.store.find_by_email("alice@example.com")
        assert account.hashed_password != PASSWORD
        assert account.hashed_password.startswith("$2")

    def test_validation_runs_before_store_and_hashing(self, authority: TokenAuthority) -> None:
        fake_store = MagicMock()
        svc = AuthService(store=fake_store, authority=authority, bcrypt_rounds=4)
        with patch("auth.service.hash_password") as hasher:
            with pytest.raises(ValidationError):
                svc.register({**REGISTRATION, "password": "abc"})
            hasher.assert_not_called()
        fake_store.find_by_email.assert_not_called()
        fake_store.create.assert_not_called()

    def test_constraint_conflict_after_passing_precheck(self, authority: TokenAuthority) -> None:
        """A concurrent writer wins between find_by_email() and create()."""
        fake_store = MagicMock()
        fake_store.find_by_email.return_value = None
        fake_store.create.side_effect = ConflictError("email_already_exists")
        svc = AuthService(store=fake_store, authority=authority, bcrypt_rounds=4)
        with pytest.raises(ConflictError):
            svc.register(REGISTRATION)

    def test_store_error_propagates(self, authority: TokenAuthority) -> None:
        fake_store = MagicMock()
        fake_store.find_by_email.side_effect = StoreError("down")
        svc = AuthService(store=fake_store, authority=authority, bcrypt_rounds=4)
        with pytest.raises(StoreError):
            svc.register(REGISTRATION)


class TestLogin:
    def test_login_with_correct_password(self, service: AuthService) -> None:
        service.register(REGISTRATION)
        claims = service.verify_token(service.login({"email": "alice@example.com", "password": PASSWORD}))
        assert claims.email == "alice@example.com"

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, service: AuthService) -> None:
        service.register(REGISTRATION)
        with pytest.raises(InvalidCredentials) as wrong_pw:
            service.login({"email": "alice@example.com", "password": "Wrong-password-1"})
        with pytest.raises(InvalidCredentials) as unknown:
            service.login({"email": "nobody@example.com", "password": PASSWORD})
        assert type(wrong_pw.value) is type(unknown.value)
        assert wrong_pw.value.code == unknown.value.code == "error_invalid_credentials"
        assert wrong_pw.value.message == unknown.value.message

    def test_unknown_email_still_runs_bcrypt(self, service: AuthService) -> None:
        with patch("auth.service.verify_password", return_value=False) as checker:
            with pytest.raises(InvalidCredentials):
                service.login({"email": "nobody@example.com", "password": PASSWORD})
        checker.assert_called_once()

    def test_login_validation_error(self, service: AuthService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.login({"email": "alice", "password": PASSWORD})
        assert exc_info.value.message == "error_email_invalid"


class TestTokens:
    def test_verify_missing(self, service: AuthService) -> None:
        with pytest.raises(MissingToken):
            service.verify_token(None)

    def test_refresh_returns_new_token(self, service: AuthService) -> None:
        token = service.register(REGISTRATION)
        claims = service.verify_token(service.refresh_token(token))
        assert claims.name == "alice_w"

    def test_refresh_for_unknown_account(self, service: AuthService) -> None:
        ghost = Account(id=4242, email="ghost@example.com", username="ghost_user", hashed_password="x")
        token = service.authority.issue(ghost)
        with pytest.raises(AccountNotFound):
            service.refresh_token(token)
