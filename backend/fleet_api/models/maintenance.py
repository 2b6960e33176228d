import uuid

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from fleet_api.core.database import Base


class MaintenanceCategory(Base):
    __tablename__ = "maintenance_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)


class Maintenance(Base):
    """Maintenance definition with default frequencies."""
    __tablename__ = "maintenances"
    __table_args__ = (
        CheckConstraint("kilometers_frequency IS NULL OR kilometers_frequency > 0", name="ck_maintenances_km_freq"),
        CheckConstraint("days_frequency IS NULL OR days_frequency > 0", name="ck_maintenances_days_freq"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("maintenance_categories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    kilometers_frequency = Column(Integer)
    days_frequency = Column(Integer)
    observations = Column(Text)
    instructions = Column(Text)

    category = relationship("MaintenanceCategory", lazy="joined")


class MaintenanceRequirement(Base):
    """How often a maintenance recurs for every vehicle of a model."""
    __tablename__ = "maintenance_requirements"
    __table_args__ = (
        CheckConstraint(
            "kilometers_frequency IS NULL OR kilometers_frequency > 0", name="ck_maintenance_requirements_km_freq"
        ),
        CheckConstraint("days_frequency IS NULL OR days_frequency > 0", name="ck_maintenance_requirements_days_freq"),
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_maintenance_requirements_date_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    model_id = Column(Uuid, ForeignKey("vehicle_models.id", ondelete="CASCADE"), nullable=False, index=True)
    maintenance_id = Column(Uuid, ForeignKey("maintenances.id", ondelete="CASCADE"), nullable=False, index=True)
    kilometers_frequency = Column(Integer)
    days_frequency = Column(Integer)
    observations = Column(Text)
    instructions = Column(Text)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    model = relationship("VehicleModel", lazy="joined")
    maintenance = relationship("Maintenance", lazy="joined")


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"
    __table_args__ = (
        CheckConstraint("kilometers >= 0", name="ck_maintenance_records_kilometers"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    maintenance_id = Column(Uuid, ForeignKey("maintenances.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    # Odometer reading logged together with the record
    kilometers_log_id = Column(Uuid, ForeignKey("vehicle_kilometers.id", ondelete="SET NULL"))

    date = Column(DateTime, nullable=False)
    kilometers = Column(Integer, nullable=False)
    notes = Column(Text)

    vehicle = relationship("Vehicle", lazy="joined")
    maintenance = relationship("Maintenance", lazy="joined")
