import uuid

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fleet_api.core.database import Base

DEFAULT_CECO = "99999999"  # records created before ceco was tracked


class VehicleBrand(Base):
    __tablename__ = "vehicle_brands"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)


class VehicleModel(Base):
    __tablename__ = "vehicle_models"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    brand_id = Column(Uuid, ForeignKey("vehicle_brands.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), unique=True, nullable=False)
    vehicle_type = Column(String(50))

    brand = relationship("VehicleBrand", lazy="joined")


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    license_plate = Column(String(10), unique=True, index=True, nullable=False)
    model_id = Column(Uuid, ForeignKey("vehicle_models.id", ondelete="SET NULL"), index=True)
    year = Column(Integer, nullable=False)
    chassis_number = Column(String(50))
    engine_number = Column(String(50))
    vehicle_type = Column(String(50))
    transmission = Column(String(50))
    fuel_type = Column(String(50))

    # Base date for time-based maintenance when no record exists yet
    registration_date = Column(Date)

    model = relationship("VehicleModel", lazy="joined")


class VehicleResponsible(Base):
    __tablename__ = "vehicle_responsibles"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date > start_date", name="ck_vehicle_responsibles_date_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    ceco = Column(String(8), nullable=False, default=DEFAULT_CECO)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    vehicle = relationship("Vehicle", lazy="joined")
    user = relationship("User", lazy="joined")


class VehicleKilometers(Base):
    __tablename__ = "vehicle_kilometers"
    __table_args__ = (
        UniqueConstraint("vehicle_id", "date", name="uq_vehicle_kilometers_vehicle_date"),
        CheckConstraint("kilometers >= 0", name="ck_vehicle_kilometers_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    kilometers = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
