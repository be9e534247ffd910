"""
auth/tokens.py -- Token authority and password hashing.

Security design decisions:
  Tokens: python-jose with HS256. A token carries a snapshot of the account
       ({id, name, email}) under the "user" claim plus iat/exp. The server
       keeps no session record -- validity is decided by signature and
       timestamp alone at verification time.

       Verification order is fixed: missing -> signature/structure -> expiry.
       jose's own exp check is disabled so expiry is judged against the
       authority's clock (injectable for tests) and only after the signature
       has been accepted. An expired token is therefore always reported as
       Expired, never as SignatureInvalid, and a forged token is never
       reported as Expired.

       Refresh always reloads the account from the store. The presented
       token's claims may be stale; the new token reflects current state.
       The old token is not revoked and stays usable until its own expiry.

  Passwords: bcrypt directly (no passlib wrapper). The cost factor is
       configurable (BCRYPT_ROUNDS). bcrypt only looks at the first 72 bytes
       of input and bcrypt 5.x raises on longer inputs, so the encoded
       password is cut to 72 bytes on both the hash and the check path.

       A dummy hash of the same cost lets authenticate() run bcrypt even when
       the email is unknown, so response time does not reveal which emails
       are registered.

Layer rule: no imports from api/. core/ is imported for type hints only --
the authority is built from plain values (see TokenAuthority.from_settings).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import JWTError, jwt

from auth.exceptions import AccountNotFound, Expired, MissingToken, SignatureInvalid
from auth.models import Account, TokenClaims

if TYPE_CHECKING:
    from auth.store import AccountStore
    from core.config import Settings

logger = logging.getLogger("authgate.auth")

ALGORITHM = "HS256"
DEFAULT_LIFETIME_SECONDS = 1800
DEFAULT_BCRYPT_ROUNDS = 10

_BCRYPT_MAX_BYTES = 72


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _encode_password(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_encode_password(plain), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A corrupt stored hash is treated as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(_encode_password(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


@lru_cache(maxsize=4)
def dummy_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash used to equalize login timing for unknown emails.

    Cached per cost factor so only the first login at a given cost pays for
    generating it.
    """
    return hash_password("authgate_timing_dummy", rounds)


# ---------------------------------------------------------------------------
# Token authority
# ---------------------------------------------------------------------------


class TokenAuthority:
    """Issues, verifies and refreshes signed, expiring bearer tokens.

    The secret is read-only after construction, so one instance can be
    shared by every request handler without locking.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        leeway_seconds: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenAuthority requires a signing secret")
        self._secret_key = secret_key
        self.lifetime = timedelta(seconds=lifetime_seconds)
        self.leeway = timedelta(seconds=leeway_seconds)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenAuthority:
        return cls(
            secret_key=settings.secret_key,
            lifetime_seconds=settings.token_expire_seconds,
            leeway_seconds=settings.token_leeway_seconds,
        )

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, account: Account) -> str:
        """Sign a token carrying a snapshot of the account's identity fields."""
        issued_at = self._clock()
        expires_at = issued_at + self.lifetime
        payload = {
            "user": {
                "id": account.id,
                "name": account.username,
                "email": account.email,
            },
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: Any) -> TokenClaims:
        """Check signature, structure and expiry; return the embedded claims.

        ``token`` comes straight from a request body, so it may be any JSON value.

        Raises:
            MissingToken:      token is None or blank. No decoding is attempted.
            SignatureInvalid:  not a string, signature mismatch, malformed token
                               or claims.
            Expired:           signature is fine but now > exp (+ leeway).
        """
        if token is None or (isinstance(token, str) and not token.strip()):
            raise MissingToken()
        if not isinstance(token, str):
            raise SignatureInvalid()

        # jose encodes the token before its own error handling, so a lone
        # surrogate surfaces as UnicodeEncodeError (a ValueError).
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except (JWTError, ValueError) as exc:
            raise SignatureInvalid() from exc

        claims = _claims_from_payload(payload)
        if self._clock() > claims.expires_at + self.leeway:
            raise Expired()
        return claims

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, token: Any, store: AccountStore) -> str:
        """Verify a token and issue a new one from the account's current state.

        Raises the verify() failures, AccountNotFound if the account behind
        the token no longer exists, and StoreError from the store.
        """
        claims = self.verify(token)
        account = store.find_by_id(claims.id)
        if account is None:
            logger.info("Refresh rejected: account %s no longer exists", claims.id)
            raise AccountNotFound()
        return self.issue(account)


def _claims_from_payload(payload: Any) -> TokenClaims:
    """Map a decoded payload onto TokenClaims; any shape problem is SignatureInvalid."""
    user = payload.get("user") if isinstance(payload, dict) else None
    if not isinstance(user, dict):
        raise SignatureInvalid()
    account_id = user.get("id")
    name = user.get("name")
    email = user.get("email")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(account_id, int) or not isinstance(name, str) or not isinstance(email, str):
        raise SignatureInvalid()
    if not isinstance(iat, int) or not isinstance(exp, int):
        raise SignatureInvalid()
    return TokenClaims(
        id=account_id,
        name=name,
        email=email,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
