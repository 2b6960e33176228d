import uuid

from sqlalchemy import (
    Column, Integer, String, Date, Text, ForeignKey, CheckConstraint, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from fleet_api.core.database import Base


class QuarterlyControl(Base):
    __tablename__ = "quarterly_controls"
    __table_args__ = (
        UniqueConstraint("vehicle_id", "year", "quarter", name="uq_quarterly_controls_vehicle_period"),
        CheckConstraint("quarter BETWEEN 1 AND 4", name="ck_quarterly_controls_quarter"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    quarter = Column(Integer, nullable=False)
    intended_delivery_date = Column(Date, nullable=False)

    # Filled in by the driver
    filled_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"))
    filled_at = Column(Date)
    kilometers_log_id = Column(Uuid, ForeignKey("vehicle_kilometers.id", ondelete="SET NULL"))

    vehicle = relationship("Vehicle", lazy="joined")
    items = relationship(
        "QuarterlyControlItem",
        back_populates="quarterly_control",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class QuarterlyControlItem(Base):
    __tablename__ = "quarterly_control_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quarterly_control_id = Column(
        Uuid, ForeignKey("quarterly_controls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category = Column(String(100), nullable=False)
    title = Column(String(200), nullable=False)
    status = Column(String(20), nullable=False, default="PENDIENTE")  # PENDIENTE, APROBADO, RECHAZADO
    observations = Column(Text, nullable=False, default="")

    quarterly_control = relationship("QuarterlyControl", back_populates="items")
