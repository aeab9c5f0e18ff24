"""Request dependencies: services per request, current user and role checks."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.exceptions import InvalidToken, PermissionDenied
from app.schemas.auth import CurrentUser
from app.services.accounts import SqlAccountStore
from app.services.auth import AuthService
from app.services.token_authority import TokenAuthority, authorize
from app.services.vehicles import VehicleService

security = HTTPBearer(auto_error=False)


def get_token_authority(db: Annotated[Session, Depends(get_db)]) -> TokenAuthority:
    return TokenAuthority.from_settings(SqlAccountStore(db), get_settings())


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenAuthority, Depends(get_token_authority)],
) -> AuthService:
    return AuthService(SqlAccountStore(db), tokens)


def get_vehicle_service(db: Annotated[Session, Depends(get_db)]) -> VehicleService:
    return VehicleService(db)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenAuthority, Depends(get_token_authority)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer access token and return its claims.

    Access tokens are stateless, so this never reads the database. Raises
    InvalidToken (401) when the header is missing or the token does not verify.
    """
    if credentials is None:
        raise InvalidToken("malformed", "Not authenticated")
    payload = tokens.verify_access_token(credentials.credentials)
    return CurrentUser(id=payload.account_id, email=payload.email, role=payload.role)


def require_roles(*roles: str) -> Callable[..., CurrentUser]:
    """Dependency factory: require an authenticated user whose role is in roles (any if empty)."""
    allowed = frozenset(roles)

    def dep(user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
        if not authorize(user.role, allowed):
            raise PermissionDenied()
        return user

    return dep
