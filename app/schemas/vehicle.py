"""Request/response schemas for vehicles, driver assignment and listing."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VehicleType = Literal["car", "van", "bus", "truck", "motorcycle"]
AssignmentStatus = Literal["assigned", "unassigned"]

MIN_YEAR = 1900
PLATE_NUMBER_MAX_LENGTH = 32
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10

# Columns a list can be sorted by; prefix with '-' for descending.
SORTABLE_FIELDS: frozenset[str] = frozenset({"plate_number", "year", "manufacturer", "created_at"})
DEFAULT_SORT = "-created_at"


def _check_year(v: int | None) -> int | None:
    # Next year's models are sold before the calendar turns over.
    max_year = datetime.now(UTC).year + 1
    if v is not None and not (MIN_YEAR <= v <= max_year):
        raise ValueError(f"year must be between {MIN_YEAR} and {max_year}")
    return v


class VehicleCreate(BaseModel):
    plate_number: str = Field(
        ...,
        min_length=1,
        max_length=PLATE_NUMBER_MAX_LENGTH,
        description="Unique plate number; stored upper-cased (e.g. ABC-1234).",
    )
    model: str = Field(..., min_length=1, max_length=255, description="Model (e.g. Corolla)")
    manufacturer: str = Field(..., min_length=1, max_length=255, description="Manufacturer (e.g. Toyota)")
    year: int = Field(..., description="Manufacturing year")
    type: VehicleType
    sim_number: str | None = Field(default=None, max_length=32, description="SIM number of the GPS device")
    device_id: str | None = Field(default=None, max_length=255, description="Telematics device id")
    driver_id: int | None = Field(default=None, description="Account id of the driver to assign")

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        return _check_year(v)

    @field_validator("plate_number", "model", "manufacturer")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class VehicleUpdate(BaseModel):
    """Partial update; only fields present in the body are changed."""

    plate_number: str | None = Field(default=None, min_length=1, max_length=PLATE_NUMBER_MAX_LENGTH)
    model: str | None = Field(default=None, min_length=1, max_length=255)
    manufacturer: str | None = Field(default=None, min_length=1, max_length=255)
    year: int | None = None
    type: VehicleType | None = None
    sim_number: str | None = Field(default=None, max_length=32)
    device_id: str | None = Field(default=None, max_length=255)
    driver_id: int | None = Field(default=None, description="null unassigns the driver")

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        return _check_year(v)

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "VehicleUpdate":
        for name in ("plate_number", "model", "manufacturer", "year", "type"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class AssignDriverRequest(BaseModel):
    driver_id: int = Field(..., description="Account id of a user with role 'driver'")


class VehicleQuery(BaseModel):
    """Query string for GET /vehicles: filters, sorting and pagination."""

    page: int = Field(default=1, ge=1, description="Page number (starts from 1)")
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    type: VehicleType | None = None
    manufacturer: str | None = Field(default=None, max_length=255, description="Case-insensitive partial match")
    assignment_status: AssignmentStatus | None = None
    search: str | None = Field(
        default=None,
        max_length=255,
        description="Case-insensitive match on plate number, model or manufacturer",
    )
    sort_by: str = Field(default=DEFAULT_SORT, description="e.g. plate_number, -year, -created_at")

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v: str) -> str:
        if v.removeprefix("-") not in SORTABLE_FIELDS:
            raise ValueError(f"sort_by must be one of {sorted(SORTABLE_FIELDS)}, optionally prefixed with '-'")
        return v


class DriverSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str | None = None
    role: str


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    plate_number: str
    model: str
    manufacturer: str
    year: int
    type: str
    sim_number: str | None = None
    device_id: str | None = None
    driver_id: int | None = None
    driver: DriverSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class VehicleListResponse(BaseModel):
    data: list[VehicleOut]
    pagination: Pagination


class VehicleDeletedResponse(BaseModel):
    message: str = "Vehicle deleted successfully."
    id: int
    plate_number: str
