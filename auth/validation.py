"""
auth/validation.py -- Shape checks for registration and login input.

Both validators run before any store access or password hashing, so a
rejected request has no side effects. Pydantic evaluates fields in
declaration order and collects every violation; only the first one is
reported (first-error-wins), which is why field order below matters.

Messages are stable machine-readable keys, not prose:

  register: error_name_required, error_name_length, error_email_required,
            error_password_complexity, error_password_too_long
  login:    error_email_invalid, error_password_required

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, ClassVar

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_core import PydanticCustomError

from auth.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")

PASSWORD_SYMBOLS = "!@#$%^&*()_+=-[]{}|\\:;'<>,.?/~`"
PASSWORD_PATTERN = re.compile(
    r"(?=.*?[A-Z])(?=.*?[a-z])(?=.*?[0-9])(?=.*?[" + re.escape(PASSWORD_SYMBOLS) + r"]).{12,}",
)
PASSWORD_MAX_LENGTH = 1024

USERNAME_MIN_LENGTH = 6
USERNAME_MAX_LENGTH = 255


def _rule(message: str) -> PydanticCustomError:
    # The error type doubles as the client-facing message key.
    return PydanticCustomError(message, message)


class RegistrationInput(BaseModel):
    """Validated registration request. ``name`` becomes the account username."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    # Reported when a field is missing or not a string.
    required_messages: ClassVar[dict[str, str]] = {
        "name": "error_name_required",
        "email": "error_email_required",
        "password": "error_password_complexity",
    }

    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def name_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise _rule("error_name_required")
        if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
            raise _rule("error_name_length")
        return value

    @field_validator("email")
    @classmethod
    def email_well_formed(cls, value: str) -> str:
        if not EMAIL_PATTERN.fullmatch(value):
            raise _rule("error_email_required")
        return value

    @field_validator("password")
    @classmethod
    def password_complex(cls, value: str) -> str:
        if not PASSWORD_PATTERN.fullmatch(value):
            raise _rule("error_password_complexity")
        if len(value) > PASSWORD_MAX_LENGTH:
            raise _rule("error_password_too_long")
        return value


class LoginInput(BaseModel):
    """Validated login request. Password complexity is not re-checked here."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    required_messages: ClassVar[dict[str, str]] = {
        "email": "error_email_invalid",
        "password": "error_password_required",
    }

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_well_formed(cls, value: str) -> str:
        if not EMAIL_PATTERN.fullmatch(value):
            raise _rule("error_email_invalid")
        return value

    @field_validator("password")
    @classmethod
    def password_present(cls, value: str) -> str:
        if value == "":
            raise _rule("error_password_required")
        return value


def _first_error(model: type[BaseModel], exc: pydantic.ValidationError) -> str:
    """Reduce Pydantic's error list to the first violated rule's message."""
    required: dict[str, str] = model.required_messages
    err = exc.errors()[0]
    if err["type"].startswith("error_"):
        return err["type"]
    loc = err.get("loc") or ()
    if loc and loc[0] in required:
        return required[loc[0]]
    # Not a mapping at all -- report the first field as missing.
    return next(iter(required.values()))


def _validate(model: type[BaseModel], data: Mapping[str, Any] | None) -> Any:
    try:
        return model.model_validate(data if data is not None else {})
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_error(model, exc)) from None


def validate_registration(data: Mapping[str, Any] | None) -> RegistrationInput:
    """Validate raw registration input.

    Raises ValidationError carrying the first violated rule's message.
    """
    return _validate(RegistrationInput, data)


def validate_login(data: Mapping[str, Any] | None) -> LoginInput:
    """Validate raw login input.

    Raises ValidationError carrying the first violated rule's message.
    """
    return _validate(LoginInput, data)
