"""Account use cases: registration, login, token refresh, logout, profile and password."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from functools import lru_cache

from app.core.exceptions import BadRequest, Conflict, InvalidCredentials, NotFound
from app.core.security import hash_password, normalize_email, verify_password
from app.models.user import ROLE_USER, User
from app.schemas.auth import RegisterRequest, TokenPair, UpdateProfileRequest
from app.services.accounts import DUPLICATE_EMAIL_MESSAGE, AccountStore
from app.services.token_authority import TokenAuthority

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_password_hash() -> str:
    # Checked when the email is unknown so login timing does not reveal whether
    # an account exists.
    return hash_password("unused-placeholder-password")


class AuthService:
    """Wires the account store, password hashing and the token authority together."""

    def __init__(self, store: AccountStore, tokens: TokenAuthority) -> None:
        self._store = store
        self._tokens = tokens

    def register(self, body: RegisterRequest) -> tuple[User, TokenPair]:
        """Create a 'user' account and start its first session."""
        if self._store.find_by_email(body.email) is not None:
            raise Conflict(DUPLICATE_EMAIL_MESSAGE)
        user = self._store.create(
            email=body.email,
            password_hash=hash_password(body.password),
            name=body.name,
            phone=body.phone,
            role=ROLE_USER,
        )
        logger.info("Account registered", extra={"account_id": user.id})
        return user, self._tokens.issue_token_pair(user)

    def login(self, email: str, password: str) -> TokenPair:
        user = self._store.find_by_email(normalize_email(email))
        if user is None:
            verify_password(password, _dummy_password_hash())
            logger.info("Login failed", extra={"reason": "unknown_email"})
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login failed", extra={"account_id": user.id, "reason": "bad_password"})
            raise InvalidCredentials()
        return self._tokens.issue_token_pair(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        """Consume a refresh token and rotate: new access token, new refresh token."""
        account_id = self._tokens.verify_and_consume_refresh_token(refresh_token)
        user = self._store.find_by_id(account_id)
        if user is None:
            raise NotFound("Account not found.")
        return self._tokens.issue_token_pair(user, consumed=refresh_token)

    def logout(self, account_id: int) -> None:
        self._tokens.revoke(account_id)

    def get_profile(self, account_id: int) -> User:
        user = self._store.find_by_id(account_id)
        if user is None:
            raise NotFound("Account not found.")
        return user

    def update_profile(self, account_id: int, body: UpdateProfileRequest) -> User:
        if body.email is not None:
            existing = self._store.find_by_email(body.email)
            if existing is not None and existing.id != account_id:
                raise Conflict(DUPLICATE_EMAIL_MESSAGE)
        return self._store.update_profile(
            account_id,
            name=body.name,
            phone=body.phone,
            email=body.email,
        )

    def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        """Replace the password and end every session of the account."""
        if current_password == new_password:
            raise BadRequest("New password must be different from current password.")
        user = self.get_profile(account_id)
        if not verify_password(current_password, user.password_hash):
            raise BadRequest("Current password is incorrect.")
        self._store.update_password(account_id, hash_password(new_password))
        self._tokens.revoke(account_id)
        logger.info("Password changed", extra={"account_id": account_id})

    def change_role(self, account_id: int, role: str) -> User:
        """Set a new role; sessions are revoked so the next login carries it."""
        user = self._store.update_role(account_id, role)
        self._tokens.revoke(account_id)
        logger.info("Role changed", extra={"account_id": account_id, "role": role})
        return user

    def list_accounts(self) -> Sequence[User]:
        return self._store.list_accounts()
