"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

The token is read from the ``Authorization: Bearer <token>`` header and
checked by the token authority only -- no store lookup. Validity is decided
by signature and expiry alone.

get_current_claims() raises HTTP 401 when the token is missing or invalid,
and lets Expired propagate so the client sees the distinct expired status.

Layer rule: no imports from api/. This module may import from fastapi
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.exceptions import MissingToken, SignatureInvalid
from auth.models import TokenClaims
from auth.service import AuthService


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_claims(request: Request) -> TokenClaims:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    service: AuthService = request.app.state.auth_service
    try:
        return service.verify_token(bearer_token(request))
    except (MissingToken, SignatureInvalid) as exc:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
