"""Vehicle endpoints: CRUD, filtered listing and driver assignment."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_vehicle_service, require_roles
from app.models.user import ROLE_ADMIN, ROLE_FLEET_MANAGER
from app.schemas.auth import CurrentUser
from app.schemas.vehicle import (
    AssignDriverRequest,
    VehicleCreate,
    VehicleDeletedResponse,
    VehicleListResponse,
    VehicleOut,
    VehicleQuery,
    VehicleUpdate,
)
from app.services.vehicles import VehicleService

router = APIRouter()

# Any authenticated account may read; managing the fleet needs one of these roles.
any_user = require_roles()
fleet_managers = require_roles(ROLE_ADMIN, ROLE_FLEET_MANAGER)
admins = require_roles(ROLE_ADMIN)


@router.post("", response_model=VehicleOut, status_code=status.HTTP_201_CREATED)
def create_vehicle(
    body: VehicleCreate,
    _user: Annotated[CurrentUser, Depends(fleet_managers)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleOut:
    """Create a vehicle; the plate number is normalized to upper case and must be unique."""
    return VehicleOut.model_validate(vehicles.create(body))


@router.get("", response_model=VehicleListResponse)
def list_vehicles(
    query: Annotated[VehicleQuery, Query()],
    _user: Annotated[CurrentUser, Depends(any_user)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleListResponse:
    """
    List vehicles with pagination, filtering and sorting.

    Filters: type, manufacturer (partial), assignment_status (assigned/unassigned),
    search (plate number, model or manufacturer). Sort with sort_by, '-' for descending.
    """
    return vehicles.list_vehicles(query)


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(
    vehicle_id: int,
    _user: Annotated[CurrentUser, Depends(any_user)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleOut:
    return VehicleOut.model_validate(vehicles.get(vehicle_id))


@router.patch("/{vehicle_id}", response_model=VehicleOut)
def update_vehicle(
    vehicle_id: int,
    body: VehicleUpdate,
    _user: Annotated[CurrentUser, Depends(fleet_managers)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleOut:
    return VehicleOut.model_validate(vehicles.update(vehicle_id, body))


@router.delete("/{vehicle_id}", response_model=VehicleDeletedResponse)
def delete_vehicle(
    vehicle_id: int,
    _user: Annotated[CurrentUser, Depends(admins)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleDeletedResponse:
    """Delete a vehicle (admin only)."""
    return vehicles.delete(vehicle_id)


@router.patch("/{vehicle_id}/assign-driver", response_model=VehicleOut)
def assign_driver(
    vehicle_id: int,
    body: AssignDriverRequest,
    _user: Annotated[CurrentUser, Depends(fleet_managers)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleOut:
    """Assign a driver; the account must have role 'driver' and no other vehicle."""
    return VehicleOut.model_validate(vehicles.assign_driver(vehicle_id, body.driver_id))


@router.patch("/{vehicle_id}/unassign-driver", response_model=VehicleOut)
def unassign_driver(
    vehicle_id: int,
    _user: Annotated[CurrentUser, Depends(fleet_managers)],
    vehicles: Annotated[VehicleService, Depends(get_vehicle_service)],
) -> VehicleOut:
    return VehicleOut.model_validate(vehicles.unassign_driver(vehicle_id))
