"""
API request and response models for authgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Registration and login bodies are NOT modelled here: they are passed through
as raw mappings so auth/validation.py can apply its first-error-wins rules
and messages. A strict Pydantic body model would answer with FastAPI's own
422 aggregate instead.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TokenRequest(BaseModel):
    """Request body for POST /api/v1/auth/validateToken."""

    # Any JSON value is accepted; a non-string token is reported as token_invalid.
    token: Optional[Any] = None


class RefreshRequest(BaseModel):
    """Request body for POST /api/v1/auth/refresh.

    The wire name is camelCase (refreshToken) for existing clients.
    """

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[Any] = Field(default=None, alias="refreshToken")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class AccountPublic(BaseModel):
    """Public view of an account. Serialized with the legacy ``_id`` key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(alias="_id")
    username: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
