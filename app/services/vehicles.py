"""Vehicle CRUD, filtered listing and driver assignment."""

import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import BadRequest, Conflict, NotFound
from app.models import User, Vehicle
from app.models.user import ROLE_DRIVER
from app.schemas.vehicle import (
    Pagination,
    VehicleCreate,
    VehicleDeletedResponse,
    VehicleListResponse,
    VehicleOut,
    VehicleQuery,
    VehicleUpdate,
)

logger = logging.getLogger(__name__)

PLATE_EXISTS_MESSAGE = "A vehicle with this plate number already exists."

SORT_COLUMNS = {
    "plate_number": Vehicle.plate_number,
    "year": Vehicle.year,
    "manufacturer": Vehicle.manufacturer,
    "created_at": Vehicle.created_at,
}


def normalize_plate(plate_number: str) -> str:
    return plate_number.strip().upper()


def _contains(term: str) -> str:
    """LIKE pattern matching term anywhere, with wildcards in term taken literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class VehicleService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, body: VehicleCreate) -> Vehicle:
        plate = normalize_plate(body.plate_number)
        if self._find_by_plate(plate) is not None:
            raise Conflict(PLATE_EXISTS_MESSAGE)
        if body.driver_id is not None:
            self._validate_driver(body.driver_id)

        vehicle = Vehicle(**body.model_dump(exclude={"plate_number"}), plate_number=plate)
        self._session.add(vehicle)
        self._commit()
        self._session.refresh(vehicle)
        logger.info("Vehicle created", extra={"vehicle_id": vehicle.id, "plate_number": plate})
        return vehicle

    def get(self, vehicle_id: int) -> Vehicle:
        vehicle = self._session.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise NotFound("Vehicle not found.")
        return vehicle

    def list_vehicles(self, query: VehicleQuery) -> VehicleListResponse:
        """Filter, sort and paginate vehicles; driver details are joined in."""
        filters = []
        if query.type:
            filters.append(Vehicle.type == query.type)
        if query.manufacturer:
            filters.append(Vehicle.manufacturer.ilike(_contains(query.manufacturer), escape="\\"))
        if query.assignment_status == "assigned":
            filters.append(Vehicle.driver_id.is_not(None))
        elif query.assignment_status == "unassigned":
            filters.append(Vehicle.driver_id.is_(None))
        if query.search:
            pattern = _contains(query.search)
            filters.append(
                or_(
                    Vehicle.plate_number.ilike(pattern, escape="\\"),
                    Vehicle.model.ilike(pattern, escape="\\"),
                    Vehicle.manufacturer.ilike(pattern, escape="\\"),
                )
            )

        total = self._session.execute(
            select(func.count()).select_from(Vehicle).where(*filters)
        ).scalar_one()

        column = SORT_COLUMNS[query.sort_by.removeprefix("-")]
        order = column.desc() if query.sort_by.startswith("-") else column.asc()
        stmt = (
            select(Vehicle)
            .where(*filters)
            .order_by(order, Vehicle.id)
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        vehicles = self._session.execute(stmt).unique().scalars().all()

        total_pages = math.ceil(total / query.limit)
        return VehicleListResponse(
            data=[VehicleOut.model_validate(v) for v in vehicles],
            pagination=Pagination(
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=total_pages,
                has_next_page=query.page < total_pages,
                has_previous_page=query.page > 1,
            ),
        )

    def update(self, vehicle_id: int, body: VehicleUpdate) -> Vehicle:
        vehicle = self.get(vehicle_id)
        changes = body.model_dump(exclude_unset=True)

        if "plate_number" in changes:
            plate = normalize_plate(changes["plate_number"])
            existing = self._find_by_plate(plate)
            if existing is not None and existing.id != vehicle.id:
                raise Conflict(PLATE_EXISTS_MESSAGE)
            changes["plate_number"] = plate
        driver_id = changes.get("driver_id")
        if driver_id is not None and driver_id != vehicle.driver_id:
            self._validate_driver(driver_id, vehicle_id=vehicle.id)

        for name, value in changes.items():
            setattr(vehicle, name, value)
        self._commit()
        self._session.refresh(vehicle)
        return vehicle

    def delete(self, vehicle_id: int) -> VehicleDeletedResponse:
        vehicle = self.get(vehicle_id)
        deleted = VehicleDeletedResponse(id=vehicle.id, plate_number=vehicle.plate_number)
        self._session.delete(vehicle)
        self._session.commit()
        logger.info("Vehicle deleted", extra={"vehicle_id": vehicle_id})
        return deleted

    def assign_driver(self, vehicle_id: int, driver_id: int) -> Vehicle:
        vehicle = self.get(vehicle_id)
        self._validate_driver(driver_id, vehicle_id=vehicle.id)
        vehicle.driver_id = driver_id
        self._commit()
        self._session.refresh(vehicle)
        logger.info("Driver assigned", extra={"vehicle_id": vehicle_id, "driver_id": driver_id})
        return vehicle

    def unassign_driver(self, vehicle_id: int) -> Vehicle:
        vehicle = self.get(vehicle_id)
        if vehicle.driver_id is None:
            raise BadRequest("No driver is assigned to this vehicle.")
        vehicle.driver_id = None
        self._session.commit()
        self._session.refresh(vehicle)
        return vehicle

    def _find_by_plate(self, plate: str) -> Vehicle | None:
        stmt = select(Vehicle).where(Vehicle.plate_number == plate)
        return self._session.execute(stmt).unique().scalar_one_or_none()

    def _validate_driver(self, driver_id: int, vehicle_id: int | None = None) -> User:
        """Driver must exist, have role 'driver' and not drive another vehicle."""
        driver = self._session.get(User, driver_id)
        if driver is None:
            raise NotFound("Driver not found.")
        if driver.role != ROLE_DRIVER:
            raise BadRequest("Account is not a driver.")
        stmt = select(Vehicle.id).where(Vehicle.driver_id == driver_id)
        if vehicle_id is not None:
            stmt = stmt.where(Vehicle.id != vehicle_id)
        if self._session.execute(stmt).first() is not None:
            raise Conflict("Driver is already assigned to another vehicle.")
        return driver

    def _commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            # Unique plate or driver lost a race with a concurrent write.
            self._session.rollback()
            raise Conflict("Plate number or driver is already in use.") from e
