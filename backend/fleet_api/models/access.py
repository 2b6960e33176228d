import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from fleet_api.core.database import Base


class VehicleAcl(Base):
    __tablename__ = "vehicle_acl"
    __table_args__ = (
        CheckConstraint("end_time IS NULL OR end_time > start_time", name="ck_vehicle_acl_time_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(String(20), nullable=False, default="Read")  # Read, Maintainer, Driver, Full
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_reservations_date_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    vehicle = relationship("Vehicle", lazy="joined")
    user = relationship("User", lazy="joined")
