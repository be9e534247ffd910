"""
api/routes/v1/auth.py -- Registration, login and token REST endpoints.

Routes:
  POST /api/v1/auth/register        -- create account; returns a token
  POST /api/v1/auth/login           -- password login; returns a token
  POST /api/v1/auth/validateToken   -- check a token's signature and expiry
  POST /api/v1/auth/refresh         -- exchange a valid token for a fresh one

Errors are raised as auth.exceptions.AuthError subclasses and turned into
the standard error envelope by the handler in api/main.py. Status codes:
  400 validation failure, missing token, invalid token, unknown account
  401 invalid credentials (same body for unknown email and wrong password)
  409 email or username already registered
  498 token expired -- kept distinct from 400 "invalid"
  500 store failure (opaque)

Threading:
  register/login/refresh are plain ``def`` handlers. FastAPI runs them in its
  worker thread pool, so bcrypt and store I/O never block the event loop.

Security:
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from api.models import MessageResponse, RefreshRequest, TokenRequest, TokenResponse
from auth.service import AuthService

# Auth policy: every route here is public -- they are how a client obtains
# or checks credentials in the first place.
router = APIRouter()


def _token_response(token: str) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=TokenResponse)
def register(request: Request, payload: Optional[dict[str, Any]] = Body(default=None)) -> JSONResponse:
    """Register a new account from {name, email, password}.

    The body is handed to the credential validator unparsed so its
    first-error-wins messages reach the client unchanged.
    """
    service: AuthService = request.app.state.auth_service
    return _token_response(service.register(payload))


@router.post("/auth/login", response_model=TokenResponse)
def login(request: Request, payload: Optional[dict[str, Any]] = Body(default=None)) -> JSONResponse:
    """Authenticate with {email, password}.

    Returns the same error for unknown email and wrong password
    ("error_invalid_credentials") to avoid leaking which emails exist.
    """
    service: AuthService = request.app.state.auth_service
    return _token_response(service.login(payload))


@router.post("/auth/validateToken", response_model=MessageResponse)
async def validate_token(request: Request, body: Optional[TokenRequest] = None) -> MessageResponse:
    """Confirm a token is authentic and unexpired. No store access."""
    service: AuthService = request.app.state.auth_service
    service.verify_token(body.token if body else None)
    return MessageResponse(message="Token is valid")


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh(request: Request, body: Optional[RefreshRequest] = None) -> JSONResponse:
    """Issue a new token from the account's current state.

    The presented token stays valid until its own expiry.
    """
    service: AuthService = request.app.state.auth_service
    return _token_response(service.refresh_token(body.refresh_token if body else None))
