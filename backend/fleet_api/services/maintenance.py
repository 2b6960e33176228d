"""Maintenance requirements and records."""
import logging
import uuid
from datetime import date
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_or_404
from fleet_api.core.errors import bad_request, conflict
from fleet_api.models.maintenance import Maintenance, MaintenanceRecord, MaintenanceRequirement
from fleet_api.models.vehicle import Vehicle, VehicleKilometers, VehicleModel
from fleet_api.schemas.maintenance import RecordCreate, RecordUpdate, RequirementCreate, RequirementUpdate
from fleet_api.services import kilometers

logger = logging.getLogger(__name__)


def find_overlapping(
    db: Session,
    model_id: uuid.UUID,
    maintenance_id: uuid.UUID,
    start_date: date,
    end_date: Optional[date],
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[MaintenanceRequirement]:
    """First requirement for the same model and maintenance whose date range overlaps."""
    query = db.query(MaintenanceRequirement).filter(
        MaintenanceRequirement.model_id == model_id,
        MaintenanceRequirement.maintenance_id == maintenance_id,
        or_(MaintenanceRequirement.end_date.is_(None), MaintenanceRequirement.end_date >= start_date),
    )
    if end_date is not None:
        query = query.filter(MaintenanceRequirement.start_date <= end_date)
    if exclude_id is not None:
        query = query.filter(MaintenanceRequirement.id != exclude_id)
    return query.first()


def validate_requirement(
    kilometers_frequency: Optional[int],
    days_frequency: Optional[int],
    start_date: date,
    end_date: Optional[date],
) -> None:
    if not kilometers_frequency and not days_frequency:
        raise bad_request(
            "At least one of kilometers_frequency or days_frequency must be provided",
            "invalid-requirement",
            "Invalid Maintenance Requirement",
        )
    if end_date is not None and end_date < start_date:
        raise bad_request(
            "end_date must be on or after start_date",
            "invalid-requirement",
            "Invalid Maintenance Requirement",
        )


def _ensure_no_overlap(db: Session, model_id, maintenance_id, start_date, end_date, exclude_id=None) -> None:
    overlapping = find_overlapping(db, model_id, maintenance_id, start_date, end_date, exclude_id)
    if overlapping:
        raise conflict(
            f"Requirement {overlapping.id} already covers this model and maintenance "
            f"from {overlapping.start_date.isoformat()}",
            "overlapping-requirement",
            "Overlapping Maintenance Requirement",
        )


def create_requirement(db: Session, data: RequirementCreate) -> MaintenanceRequirement:
    validate_requirement(data.kilometers_frequency, data.days_frequency, data.start_date, data.end_date)
    get_or_404(db, VehicleModel, data.model_id, "Vehicle model")
    get_or_404(db, Maintenance, data.maintenance_id, "Maintenance")

    _ensure_no_overlap(db, data.model_id, data.maintenance_id, data.start_date, data.end_date)

    requirement = MaintenanceRequirement(**data.model_dump())

    db.add(requirement)
    db.commit()
    db.refresh(requirement)
    logger.info(f"Created maintenance requirement {requirement.id}")
    return requirement


def update_requirement(
    db: Session, requirement: MaintenanceRequirement, data: RequirementUpdate
) -> MaintenanceRequirement:
    """Apply a partial update, re-validating the merged result."""
    update_data = data.model_dump(exclude_unset=True)
    merged = {
        column: update_data.get(column, getattr(requirement, column))
        for column in ("model_id", "maintenance_id", "kilometers_frequency", "days_frequency", "start_date", "end_date")
    }
    validate_requirement(
        merged["kilometers_frequency"], merged["days_frequency"], merged["start_date"], merged["end_date"]
    )
    if "model_id" in update_data:
        get_or_404(db, VehicleModel, merged["model_id"], "Vehicle model")
    if "maintenance_id" in update_data:
        get_or_404(db, Maintenance, merged["maintenance_id"], "Maintenance")

    _ensure_no_overlap(
        db, merged["model_id"], merged["maintenance_id"], merged["start_date"], merged["end_date"], requirement.id
    )

    for key, value in update_data.items():
        setattr(requirement, key, value)
    db.commit()
    db.refresh(requirement)
    return requirement


def create_record(db: Session, data: RecordCreate, user_id: uuid.UUID) -> MaintenanceRecord:
    """Record a maintenance together with the odometer reading it was done at."""
    get_or_404(db, Vehicle, data.vehicle_id, "Vehicle")
    get_or_404(db, Maintenance, data.maintenance_id, "Maintenance")

    reading = kilometers.add_reading(db, data.vehicle_id, user_id, data.date, data.kilometers)
    record = MaintenanceRecord(
        vehicle_id=data.vehicle_id,
        maintenance_id=data.maintenance_id,
        user_id=user_id,
        kilometers_log_id=reading.id,
        date=data.date,
        kilometers=data.kilometers,
        notes=data.notes,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"Recorded maintenance {data.maintenance_id} on vehicle {data.vehicle_id} at {data.kilometers} km")
    return record


def update_record(db: Session, record: MaintenanceRecord, data: RecordUpdate) -> MaintenanceRecord:
    """Apply a partial update; a new date or odometer value moves the linked reading too."""
    update_data = data.model_dump(exclude_unset=True)
    if "maintenance_id" in update_data:
        get_or_404(db, Maintenance, update_data["maintenance_id"], "Maintenance")

    if "date" in update_data or "kilometers" in update_data:
        when = update_data.get("date") or record.date
        km = update_data["kilometers"] if update_data.get("kilometers") is not None else record.kilometers
        update_data["date"], update_data["kilometers"] = when, km
        reading = db.get(VehicleKilometers, record.kilometers_log_id) if record.kilometers_log_id else None
        if reading is not None:
            kilometers.move_reading(db, reading, when, km)
        else:
            reading = kilometers.add_reading(db, record.vehicle_id, record.user_id, when, km)
            record.kilometers_log_id = reading.id
    for key, value in update_data.items():
        setattr(record, key, value)
    db.commit()
    db.refresh(record)
    return record


def last_records(
    db: Session, vehicle_ids: Iterable[uuid.UUID], maintenance_ids: Iterable[uuid.UUID]
) -> Dict[Tuple[uuid.UUID, uuid.UUID], MaintenanceRecord]:
    """Latest record per (vehicle, maintenance)."""
    vehicle_ids, maintenance_ids = list(vehicle_ids), list(maintenance_ids)
    if not vehicle_ids or not maintenance_ids:
        return {}

    latest = (
        db.query(
            MaintenanceRecord.vehicle_id.label("vehicle_id"),
            MaintenanceRecord.maintenance_id.label("maintenance_id"),
            func.max(MaintenanceRecord.date).label("last_date"),
        )
        .filter(
            MaintenanceRecord.vehicle_id.in_(vehicle_ids),
            MaintenanceRecord.maintenance_id.in_(maintenance_ids),
        )
        .group_by(MaintenanceRecord.vehicle_id, MaintenanceRecord.maintenance_id)
        .subquery()
    )
    rows = (
        db.query(MaintenanceRecord)
        .join(
            latest,
            (MaintenanceRecord.vehicle_id == latest.c.vehicle_id)
            & (MaintenanceRecord.maintenance_id == latest.c.maintenance_id)
            & (MaintenanceRecord.date == latest.c.last_date),
        )
        .all()
    )
    return {(row.vehicle_id, row.maintenance_id): row for row in rows}
