"""Vehicle responsibility periods."""
import logging
import uuid
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleet_api.core.database import get_or_404
from fleet_api.core.errors import conflict
from fleet_api.models.user import User
from fleet_api.models.vehicle import Vehicle, VehicleResponsible
from fleet_api.schemas.vehicle import ResponsibleCreate, ResponsibleUpdate

logger = logging.getLogger(__name__)

OPEN_END = date(9999, 12, 31)


def _overlap_error(overlap: VehicleResponsible):
    end = overlap.end_date.isoformat() if overlap.end_date else "present"
    return conflict(
        f"Vehicle already has a responsible overlapping ({overlap.start_date.isoformat()} to {end})",
        "overlap-error",
        "Vehicle Responsibility Overlap",
    )


def assert_no_overlap(
    db: Session, vehicle_id: uuid.UUID, start_date: date, end_date: Optional[date], exclude_id=None
) -> None:
    query = db.query(VehicleResponsible).filter(
        VehicleResponsible.vehicle_id == vehicle_id,
        func.coalesce(VehicleResponsible.end_date, OPEN_END) > start_date,
        VehicleResponsible.start_date < (end_date or OPEN_END),
    )
    if exclude_id is not None:
        query = query.filter(VehicleResponsible.id != exclude_id)
    overlap = query.first()
    if overlap:
        raise _overlap_error(overlap)


def close_open_periods(db: Session, vehicle_id: uuid.UUID, start_date: date, exclude_id=None) -> None:
    """End every open-ended responsibility of the vehicle the day before ``start_date``."""
    previous_end = start_date - timedelta(days=1)
    query = db.query(VehicleResponsible).filter(
        VehicleResponsible.vehicle_id == vehicle_id,
        VehicleResponsible.end_date.is_(None),
    )
    if exclude_id is not None:
        query = query.filter(VehicleResponsible.id != exclude_id)
    for active in query.all():
        if active.start_date >= previous_end:
            raise _overlap_error(active)
        active.end_date = previous_end
        logger.info(f"Closed responsibility {active.id} on {previous_end}")


def add_responsible(db: Session, data: ResponsibleCreate) -> VehicleResponsible:
    get_or_404(db, Vehicle, data.vehicle_id, "Vehicle")
    get_or_404(db, User, data.user_id, "User")

    if data.end_date is None:
        close_open_periods(db, data.vehicle_id, data.start_date)
    else:
        assert_no_overlap(db, data.vehicle_id, data.start_date, data.end_date)

    responsible = VehicleResponsible(**data.model_dump())
    db.add(responsible)
    db.commit()
    db.refresh(responsible)
    logger.info(f"User {data.user_id} responsible for vehicle {data.vehicle_id} from {data.start_date}")
    return responsible


def update_responsible(db: Session, responsible: VehicleResponsible, data: ResponsibleUpdate) -> VehicleResponsible:
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("user_id") is not None:
        get_or_404(db, User, update_data["user_id"], "User")

    start_date = update_data.get("start_date", responsible.start_date)
    end_date = update_data.get("end_date", responsible.end_date)
    if end_date is None:
        close_open_periods(db, responsible.vehicle_id, start_date, exclude_id=responsible.id)
    else:
        assert_no_overlap(db, responsible.vehicle_id, start_date, end_date, exclude_id=responsible.id)

    for key, value in update_data.items():
        setattr(responsible, key, value)
    db.commit()
    db.refresh(responsible)
    return responsible
