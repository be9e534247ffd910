"""
api/routes/v1/users.py -- Public account lookups.

Routes:
  GET /api/v1/users/{id}          -- public profile (id + username)
  GET /api/v1/users/secure/{id}   -- same profile, bearer token required

Neither route exposes email or password hash.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import AccountPublic
from auth.dependencies import get_current_claims
from auth.models import TokenClaims
from auth.service import AuthService

router = APIRouter()


def _lookup(request: Request, account_id: int) -> AccountPublic:
    service: AuthService = request.app.state.auth_service
    account = service.get_account(account_id)
    if account is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "user_not_found", "message": "User does not exist."},
        )
    return AccountPublic(id=account.id, username=account.username)


@router.get("/users/secure/{account_id}", response_model=AccountPublic)
def get_account_secure(
    request: Request,
    account_id: int,
    claims: TokenClaims = Depends(get_current_claims),
) -> AccountPublic:
    """Return a public profile to an authenticated caller."""
    return _lookup(request, account_id)


@router.get("/users/{account_id}", response_model=AccountPublic)
def get_account(request: Request, account_id: int) -> AccountPublic:
    """Return a public profile. No authentication required."""
    return _lookup(request, account_id)
