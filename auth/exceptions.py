"""
auth/exceptions.py -- Failure taxonomy for the authentication core.

Every error carries a stable machine-readable ``code`` and a short
client-safe ``message``. The API layer maps exception classes to HTTP status
codes in one place (api/main.py); nothing under auth/ knows about HTTP.

Expired and SignatureInvalid are siblings, not parent/child, so a handler
that catches one can never accidentally swallow the other.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by the auth core."""

    code: str = "auth_error"
    default_message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Client input is malformed. Raised before any store access or hashing.

    The first violated rule's key (e.g. "error_password_complexity") is both
    the code and the message.
    """

    def __init__(self, rule: str) -> None:
        super().__init__(rule)
        self.code = rule


class ConflictError(AuthError):
    """An account with the same email or username already exists."""

    _messages = {
        "email_already_exists": "An account with that email already exists.",
        "username_already_exists": "An account with that username already exists.",
    }

    def __init__(self, code: str = "email_already_exists") -> None:
        super().__init__(self._messages.get(code, "Account already exists."))
        self.code = code


class InvalidCredentials(AuthError):
    """Unknown email or wrong password. Deliberately indistinguishable."""

    code = "error_invalid_credentials"
    default_message = "Invalid email or password."


class MissingToken(AuthError):
    code = "token_missing"
    default_message = "No token, authorization denied."


class SignatureInvalid(AuthError):
    """Token is malformed, tampered with, or signed with another key."""

    code = "token_invalid"
    default_message = "Token is not valid."


class Expired(AuthError):
    """Token signature is valid but its expiry has passed."""

    code = "token_expired"
    default_message = "Token is expired."


class AccountNotFound(AuthError):
    """A valid token names an account that no longer exists."""

    code = "invalid_refresh_token"
    default_message = "Invalid refresh token."


class StoreError(AuthError):
    """Infrastructure failure in the account store.

    The message is for logs only; the API replaces it with a generic one.
    The underlying exception is chained as __cause__.
    """

    code = "server_error"
    default_message = "Account store failure."
