"""Odometer readings: monotonic logging and latest-reading lookups."""
import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_api.core.errors import AppError, PROBLEM_BASE, conflict, not_found
from fleet_api.models.vehicle import Vehicle, VehicleKilometers

logger = logging.getLogger(__name__)


def invalid_kilometers(detail: str) -> AppError:
    return AppError(detail, 422, f"{PROBLEM_BASE}/invalid-kilometers", "Invalid Kilometers Reading")


def list_for_vehicle(db: Session, vehicle_id: uuid.UUID) -> List[VehicleKilometers]:
    return (
        db.query(VehicleKilometers)
        .filter(VehicleKilometers.vehicle_id == vehicle_id)
        .order_by(VehicleKilometers.date.desc())
        .all()
    )


def _others(db: Session, vehicle_id: uuid.UUID, exclude_id: Optional[uuid.UUID]):
    query = db.query(VehicleKilometers).filter(VehicleKilometers.vehicle_id == vehicle_id)
    if exclude_id is not None:
        query = query.filter(VehicleKilometers.id != exclude_id)
    return query


def check_monotonic(
    db: Session, vehicle_id: uuid.UUID, when: datetime, kilometers: int, exclude_id: Optional[uuid.UUID] = None
) -> None:
    """A reading may not be lower than the one before it nor higher than the one after it."""
    prev = (
        _others(db, vehicle_id, exclude_id)
        .filter(VehicleKilometers.date < when)
        .order_by(VehicleKilometers.date.desc())
        .first()
    )
    if prev and kilometers < prev.kilometers:
        raise invalid_kilometers(
            f"Kilometers {kilometers} is less than previous recorded {prev.kilometers} at {prev.date.isoformat()}"
        )

    following = (
        _others(db, vehicle_id, exclude_id)
        .filter(VehicleKilometers.date > when)
        .order_by(VehicleKilometers.date.asc())
        .first()
    )
    if following and kilometers > following.kilometers:
        raise invalid_kilometers(
            f"Kilometers {kilometers} is greater than next recorded {following.kilometers} "
            f"at {following.date.isoformat()}"
        )


def check_reading(
    db: Session, vehicle_id: uuid.UUID, when: datetime, kilometers: int, exclude_id: Optional[uuid.UUID] = None
) -> None:
    """One reading per vehicle and timestamp, in odometer order."""
    if _others(db, vehicle_id, exclude_id).filter(VehicleKilometers.date == when).first():
        raise conflict(
            f"Vehicle {vehicle_id} already has a reading at {when.isoformat()}",
            "duplicate-kilometers",
            "Duplicate Kilometers Reading",
        )
    check_monotonic(db, vehicle_id, when, kilometers, exclude_id)


def add_reading(
    db: Session, vehicle_id: uuid.UUID, user_id: uuid.UUID, when: datetime, kilometers: int
) -> VehicleKilometers:
    """Stage a validated reading in the session; the caller commits."""
    if not db.query(Vehicle.id).filter(Vehicle.id == vehicle_id).first():
        raise not_found("Vehicle", vehicle_id)

    check_reading(db, vehicle_id, when, kilometers)

    reading = VehicleKilometers(vehicle_id=vehicle_id, user_id=user_id, date=when, kilometers=kilometers)
    db.add(reading)
    db.flush()
    return reading


def log_reading(
    db: Session, vehicle_id: uuid.UUID, user_id: uuid.UUID, when: datetime, kilometers: int
) -> VehicleKilometers:
    reading = add_reading(db, vehicle_id, user_id, when, kilometers)
    db.commit()
    db.refresh(reading)
    logger.info(f"Logged {kilometers} km for vehicle {vehicle_id}")
    return reading


def move_reading(db: Session, reading: VehicleKilometers, when: datetime, kilometers: int) -> VehicleKilometers:
    """Re-validate and change an existing reading in place; the caller commits."""
    check_reading(db, reading.vehicle_id, when, kilometers, exclude_id=reading.id)
    reading.date = when
    reading.kilometers = kilometers
    return reading


def latest_readings(db: Session, vehicle_ids: Optional[Iterable[uuid.UUID]] = None) -> Dict[uuid.UUID, VehicleKilometers]:
    """Latest reading per vehicle, keyed by vehicle id."""
    latest = db.query(
        VehicleKilometers.vehicle_id.label("vehicle_id"),
        func.max(VehicleKilometers.date).label("last_date"),
    )
    if vehicle_ids is not None:
        vehicle_ids = list(vehicle_ids)
        if not vehicle_ids:
            return {}
        latest = latest.filter(VehicleKilometers.vehicle_id.in_(vehicle_ids))
    latest = latest.group_by(VehicleKilometers.vehicle_id).subquery()

    rows = (
        db.query(VehicleKilometers)
        .join(
            latest,
            (VehicleKilometers.vehicle_id == latest.c.vehicle_id) & (VehicleKilometers.date == latest.c.last_date),
        )
        .all()
    )
    return {row.vehicle_id: row for row in rows}
