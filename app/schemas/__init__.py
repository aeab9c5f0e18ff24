"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccessTokenPayload,
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
from app.schemas.health import HealthResponse
from app.schemas.vehicle import (
    AssignDriverRequest,
    Pagination,
    VehicleCreate,
    VehicleDeletedResponse,
    VehicleListResponse,
    VehicleOut,
    VehicleQuery,
    VehicleUpdate,
)

__all__ = [
    "AccessTokenPayload",
    "AssignDriverRequest",
    "ChangePasswordRequest",
    "ChangeRoleRequest",
    "CurrentUser",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "Pagination",
    "RefreshRequest",
    "RegisterRequest",
    "RegisterResponse",
    "TokenPair",
    "TokenResponse",
    "UpdateProfileRequest",
    "UserProfile",
    "UsersListResponse",
    "VehicleCreate",
    "VehicleDeletedResponse",
    "VehicleListResponse",
    "VehicleOut",
    "VehicleQuery",
    "VehicleUpdate",
]
