"""Registration, login, token refresh/logout, profile and admin account endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from app.api.deps import get_auth_service, get_current_user, get_token_authority, require_roles
from app.core.config import get_settings
from app.core.exceptions import InvalidToken
from app.models.user import ROLE_ADMIN
from app.schemas.auth import (
    ChangePasswordRequest,
    ChangeRoleRequest,
    CurrentUser,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
    TokenResponse,
    UpdateProfileRequest,
    UserProfile,
    UsersListResponse,
)
from app.services.auth import AuthService
from app.services.token_authority import TokenAuthority

router = APIRouter()


def _set_refresh_cookie(response: Response, pair: TokenPair, tokens: TokenAuthority) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=pair.refresh_token,
        max_age=int(tokens.refresh_ttl.total_seconds()),
        path="/",
        httponly=True,
        samesite="strict",
        # Over plain HTTP in dev; HTTPS only in prod.
        secure=settings.APP_ENV == "prod",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().REFRESH_COOKIE_NAME, path="/")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    tokens: Annotated[TokenAuthority, Depends(get_token_authority)],
) -> RegisterResponse:
    """Create an account with role 'user' and log it in."""
    user, pair = auth.register(body)
    _set_refresh_cookie(response, pair, tokens)
    return RegisterResponse(
        user=UserProfile.model_validate(user),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    tokens: Annotated[TokenAuthority, Depends(get_token_authority)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns an access and a refresh token.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    pair = auth.login(body.email, body.password)
    _set_refresh_cookie(response, pair, tokens)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    tokens: Annotated[TokenAuthority, Depends(get_token_authority)],
    body: RefreshRequest | None = None,
) -> TokenResponse:
    """
    Exchange a refresh token (refresh_token in the body, else the httpOnly cookie) for a new pair.

    The presented refresh token is consumed: reusing it afterwards fails with 401.
    """
    token = body.refresh_token if body is not None else None
    if not token:
        token = request.cookies.get(get_settings().REFRESH_COOKIE_NAME)
    if not token:
        raise InvalidToken("malformed", "Refresh token not found")
    pair = auth.refresh(token)
    _set_refresh_cookie(response, pair, tokens)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Revoke the refresh token of the current account. The access token expires on its own."""
    auth.logout(current_user.id)
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully.")


@router.get("/profile", response_model=UserProfile)
def get_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserProfile:
    return UserProfile.model_validate(auth.get_profile(current_user.id))


@router.patch("/profile", response_model=UserProfile)
def update_profile(
    body: UpdateProfileRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserProfile:
    return UserProfile.model_validate(auth.update_profile(current_user.id, body))


@router.patch("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    response: Response,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    """Change the password; every session of the account is logged out."""
    auth.change_password(current_user.id, body.current_password, body.new_password)
    _clear_refresh_cookie(response)
    return MessageResponse(message="Password changed successfully.")


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_roles(ROLE_ADMIN))],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UsersListResponse:
    """List all accounts (admin only)."""
    return UsersListResponse(
        users=[UserProfile.model_validate(u) for u in auth.list_accounts()]
    )


@router.patch("/users/{account_id}/role", response_model=UserProfile)
def change_role(
    account_id: int,
    body: ChangeRoleRequest,
    _admin: Annotated[CurrentUser, Depends(require_roles(ROLE_ADMIN))],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserProfile:
    """Change an account's role (admin only). The account's sessions are revoked."""
    return UserProfile.model_validate(auth.change_role(account_id, body.role))
