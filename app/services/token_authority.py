"""
Session token authority: issues, verifies and rotates access/refresh token pairs.

Access tokens are stateless: a valid signature and expiry are enough. Refresh
tokens are additionally bound to the account: only the SHA-256 fingerprint of
the most recently issued refresh token is stored, so issuing a new one
invalidates every earlier one. Consuming a refresh token is a compare-and-swap
on that fingerprint, which makes each refresh token usable at most once even
when two requests race with the same token.

A consumed token leaves a marker derived from its fingerprint rather than
NULL. The rotation that follows swaps that marker for the new fingerprint, so
a revoke landing between consume and rotation (NULL) makes the rotation fail
instead of bringing the session back.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Collection
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, NoReturn

import jwt

from app.core.exceptions import InvalidToken, NotFound, SigningError
from app.core.security import fingerprint_token, fingerprints_match
from app.schemas.auth import AccessTokenPayload, TokenPair
from app.services.accounts import AccountStore

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.user import User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def consumed_marker(fingerprint: str) -> str:
    """Stored in place of a consumed token's fingerprint until the rotation replaces it."""
    return fingerprint_token("consumed:" + fingerprint)


def authorize(account_role: str, required_roles: Collection[str]) -> bool:
    """True iff required_roles is empty (any authenticated account) or contains account_role."""
    return not required_roles or account_role in required_roles


class TokenAuthority:
    """Issues and checks the token pair that represents an authenticated session."""

    authorize = staticmethod(authorize)

    def __init__(
        self,
        store: AccountStore,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise SigningError("Access and refresh token secrets must both be configured.")
        self._store = store
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, store: AccountStore, settings: Settings) -> TokenAuthority:
        return cls(
            store,
            access_secret=settings.ACCESS_TOKEN_SECRET.get_secret_value(),
            refresh_secret=settings.REFRESH_TOKEN_SECRET.get_secret_value(),
            access_ttl=settings.access_token_ttl,
            refresh_ttl=settings.refresh_token_ttl,
            algorithm=settings.JWT_ALGORITHM,
        )

    @property
    def refresh_ttl(self) -> timedelta:
        return self._refresh_ttl

    def issue_access_token(self, account_id: int, role: str, email: str) -> str:
        """Signed short-lived token carrying account id, email and role. No side effects."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(account_id),
            "email": email,
            "role": role,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self._access_ttl,
        }
        return jwt.encode(payload, self._access_secret, algorithm=self._algorithm)

    def issue_refresh_token(self, account_id: int, consumed: str | None = None) -> str:
        """
        Signed long-lived token; its fingerprint replaces the account's stored one.

        This is the rotation point: every refresh token issued earlier for the
        account stops verifying, expired or not. Raises NotFound for an unknown account.

        When rotating, pass the refresh token just consumed: the write then only
        lands while that token's consumed marker is still stored, and
        InvalidToken is raised if the session was revoked in the meantime.
        """
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(account_id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + self._refresh_ttl,
        }
        token = jwt.encode(payload, self._refresh_secret, algorithm=self._algorithm)
        if consumed is None:
            if not self._store.update_fingerprint(account_id, fingerprint_token(token)):
                raise NotFound("Account not found.")
            return token
        marker = consumed_marker(fingerprint_token(consumed))
        if not self._store.update_fingerprint(account_id, fingerprint_token(token), expected=marker):
            self._reject(account_id, "revoked_during_refresh")
        return token

    def issue_token_pair(self, account: User, consumed: str | None = None) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(account.id, account.role, account.email),
            refresh_token=self.issue_refresh_token(account.id, consumed=consumed),
        )

    def verify_access_token(self, token: str) -> AccessTokenPayload:
        """Check signature, expiry and token type only. Never touches storage."""
        claims = self._decode(token, self._access_secret, ACCESS_TOKEN_TYPE)
        email = claims.get("email")
        role = claims.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            raise InvalidToken("malformed")
        return AccessTokenPayload(
            account_id=self._account_id(claims),
            email=email,
            role=role,
        )

    def verify_and_consume_refresh_token(self, token: str) -> int:
        """
        Validate a refresh token against the stored fingerprint and consume it.

        Returns the account id. The stored fingerprint is swapped for the
        token's consumed marker, so of two concurrent calls with the same token
        only one succeeds. The caller is expected to rotate next with
        issue_refresh_token(account_id, consumed=token).
        """
        claims = self._decode(token, self._refresh_secret, REFRESH_TOKEN_TYPE)
        account_id = self._account_id(claims)

        account = self._store.find_by_id(account_id)
        if account is None:
            self._reject(account_id, "account_not_found")
        stored = account.refresh_token_hash
        if stored is None:
            self._reject(account_id, "no_active_session")

        presented = fingerprint_token(token)
        if not fingerprints_match(presented, stored):
            # Signed by us but superseded: a reused (possibly stolen) refresh token.
            self._reject(account_id, "fingerprint_mismatch")
        if not self._store.update_fingerprint(
            account_id, consumed_marker(presented), expected=presented
        ):
            self._reject(account_id, "concurrent_refresh")
        return account_id

    def revoke(self, account_id: int) -> None:
        """Clear the stored fingerprint so no outstanding refresh token verifies."""
        if not self._store.update_fingerprint(account_id, None):
            raise NotFound("Account not found.")
        logger.info("Refresh token revoked", extra={"account_id": account_id})

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidToken("bad_signature") from e
        except jwt.PyJWTError as e:
            raise InvalidToken("malformed") from e
        if claims.get("type") != expected_type:
            raise InvalidToken("malformed")
        return claims

    @staticmethod
    def _account_id(claims: dict[str, Any]) -> int:
        try:
            return int(claims["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken("malformed") from e

    @staticmethod
    def _reject(account_id: int, reason: str) -> NoReturn:
        logger.warning(
            "Refresh token rejected",
            extra={"account_id": account_id, "reason": reason},
        )
        raise InvalidToken("revoked")
