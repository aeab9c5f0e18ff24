"""Account persistence: the store protocol and its SQLAlchemy implementation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, NotFound
from app.core.security import normalize_email
from app.models.user import ROLE_USER, User

logger = logging.getLogger(__name__)


class _Any:
    def __repr__(self) -> str:
        return "ANY"


# Sentinel for update_fingerprint: write unconditionally (no compare-and-swap).
ANY = _Any()

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists."


class AccountStore(Protocol):
    """Persistence interface the auth and token services depend on."""

    def find_by_id(self, account_id: int) -> User | None:
        ...

    def find_by_email(self, email: str) -> User | None:
        ...

    def list_accounts(self) -> Sequence[User]:
        ...

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        phone: str | None = None,
        role: str = ROLE_USER,
    ) -> User:
        ...

    def update_fingerprint(
        self,
        account_id: int,
        fingerprint: str | None,
        expected: str | None | _Any = ANY,
    ) -> bool:
        """
        Set the refresh token fingerprint; return True if a row was written.

        With expected given, only write while the stored value still equals it.
        """
        ...

    def update_profile(
        self,
        account_id: int,
        *,
        name: str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> User:
        ...

    def update_password(self, account_id: int, password_hash: str) -> None:
        ...

    def update_role(self, account_id: int, role: str) -> User:
        ...


class SqlAccountStore:
    """AccountStore backed by the users table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_id(self, account_id: int) -> User | None:
        return self._session.get(User, account_id)

    def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == normalize_email(email))
        return self._session.execute(stmt).scalar_one_or_none()

    def list_accounts(self) -> Sequence[User]:
        return self._session.execute(select(User).order_by(User.id)).scalars().all()

    def create(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        phone: str | None = None,
        role: str = ROLE_USER,
    ) -> User:
        user = User(
            email=normalize_email(email),
            password_hash=password_hash,
            name=name.strip(),
            phone=phone,
            role=role,
        )
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email.
            self._session.rollback()
            raise Conflict(DUPLICATE_EMAIL_MESSAGE) from e
        self._session.refresh(user)
        return user

    def update_fingerprint(
        self,
        account_id: int,
        fingerprint: str | None,
        expected: str | None | _Any = ANY,
    ) -> bool:
        stmt = update(User).where(User.id == account_id)
        if expected is None:
            stmt = stmt.where(User.refresh_token_hash.is_(None))
        elif not isinstance(expected, _Any):
            stmt = stmt.where(User.refresh_token_hash == expected)
        stmt = stmt.values(refresh_token_hash=fingerprint).execution_options(
            synchronize_session=False
        )
        result = self._session.execute(stmt)
        self._session.commit()
        return result.rowcount == 1

    def update_profile(
        self,
        account_id: int,
        *,
        name: str | None = None,
        phone: str | None = None,
        email: str | None = None,
    ) -> User:
        user = self._require(account_id)
        if name is not None:
            user.name = name.strip()
        if phone is not None:
            user.phone = phone
        if email is not None:
            user.email = normalize_email(email)
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            raise Conflict(DUPLICATE_EMAIL_MESSAGE) from e
        self._session.refresh(user)
        return user

    def update_password(self, account_id: int, password_hash: str) -> None:
        user = self._require(account_id)
        user.password_hash = password_hash
        self._session.commit()

    def update_role(self, account_id: int, role: str) -> User:
        user = self._require(account_id)
        user.role = role
        self._session.commit()
        self._session.refresh(user)
        return user

    def _require(self, account_id: int) -> User:
        user = self._session.get(User, account_id)
        if user is None:
            raise NotFound("Account not found.")
        return user
