"""ORM model for fleet vehicles and their (optional) assigned driver."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base

VEHICLE_TYPES: tuple[str, ...] = ("car", "van", "bus", "truck", "motorcycle")


class Vehicle(Base):
    """
    Vehicle in the fleet.

    plate_number is stored trimmed and upper-cased. driver_id is unique: a driver
    can be assigned to at most one vehicle at a time.
    """

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plate_number = Column(String(32), nullable=False, unique=True, index=True)
    model = Column(String(255), nullable=False)
    manufacturer = Column(String(255), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    type = Column(String(32), nullable=False, index=True)
    sim_number = Column(String(32), nullable=True)
    device_id = Column(String(255), nullable=True)
    driver_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    driver = relationship("User", lazy="joined")
