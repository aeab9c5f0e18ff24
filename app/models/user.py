"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.models.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_FLEET_MANAGER = "fleet_manager"
ROLE_DRIVER = "driver"

ROLES: tuple[str, ...] = (ROLE_USER, ROLE_ADMIN, ROLE_FLEET_MANAGER, ROLE_DRIVER)


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored lower-cased, so the unique index is case-insensitive in practice.
    refresh_token_hash is the SHA-256 of the one refresh token currently accepted
    for this account; NULL means logged out. Only TokenAuthority writes it.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    refresh_token_hash = Column(String(64), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
