"""Fleet risk indicators.

Dates are resolved in Python against an injectable ``today`` so every
indicator behaves the same on any database backend.
"""
import logging
import uuid
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from fleet_api.core.config import settings
from fleet_api.models.enums import ControlItemStatus
from fleet_api.models.maintenance import MaintenanceRequirement
from fleet_api.models.quarterly_control import QuarterlyControl
from fleet_api.models.vehicle import Vehicle, VehicleResponsible
from fleet_api.services import kilometers, maintenance, overdue

logger = logging.getLogger(__name__)

NO_BRAND = "Sin marca"


def _names(vehicle: Vehicle):
    model = vehicle.model
    if model is None:
        return None, None
    return model.name, model.brand.name if model.brand else NO_BRAND


def _matches(search: Optional[str], *values) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in value.lower() for value in values if value)


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    return value.date() if isinstance(value, datetime) else value


def vehicles_without_responsible(db: Session, today: Optional[date] = None, search: Optional[str] = None) -> List[dict]:
    today = today or date.today()
    covered = {
        row.vehicle_id
        for row in db.query(VehicleResponsible.vehicle_id).filter(
            VehicleResponsible.start_date <= today,
            or_(VehicleResponsible.end_date.is_(None), VehicleResponsible.end_date >= today),
        )
    }
    last_end = dict(
        db.query(VehicleResponsible.vehicle_id, func.max(VehicleResponsible.end_date))
        .filter(VehicleResponsible.end_date < today)
        .group_by(VehicleResponsible.vehicle_id)
        .all()
    )

    rows = []
    for vehicle in db.query(Vehicle).order_by(Vehicle.license_plate).all():
        if vehicle.id in covered:
            continue
        model_name, brand_name = _names(vehicle)
        if not _matches(search, vehicle.license_plate, model_name, brand_name):
            continue
        rows.append({
            "vehicle_id": vehicle.id,
            "license_plate": vehicle.license_plate,
            "model_name": model_name,
            "brand_name": brand_name,
            "last_responsible_end_date": _as_date(last_end.get(vehicle.id)),
        })
    return rows


def evaluate_requirements(
    db: Session,
    today: Optional[date] = None,
    tolerance_days: int = 0,
    maintenance_id: Optional[uuid.UUID] = None,
    model_id: Optional[uuid.UUID] = None,
    vehicle_id: Optional[uuid.UUID] = None,
) -> List[dict]:
    """Evaluate every (vehicle, active requirement) pair; one row each, overdue or not."""
    today = today or date.today()

    requirements = db.query(MaintenanceRequirement).filter(
        MaintenanceRequirement.start_date <= today,
        or_(MaintenanceRequirement.end_date.is_(None), MaintenanceRequirement.end_date >= today),
    )
    if maintenance_id:
        requirements = requirements.filter(MaintenanceRequirement.maintenance_id == maintenance_id)
    if model_id:
        requirements = requirements.filter(MaintenanceRequirement.model_id == model_id)
    requirements = requirements.all()
    if not requirements:
        return []

    vehicles = db.query(Vehicle).filter(Vehicle.model_id.in_({r.model_id for r in requirements}))
    if vehicle_id:
        vehicles = vehicles.filter(Vehicle.id == vehicle_id)
    vehicles = vehicles.order_by(Vehicle.license_plate).all()

    by_model = {}
    for vehicle in vehicles:
        by_model.setdefault(vehicle.model_id, []).append(vehicle)

    readings = kilometers.latest_readings(db, [v.id for v in vehicles])
    records = maintenance.last_records(db, [v.id for v in vehicles], {r.maintenance_id for r in requirements})

    rows = []
    for requirement in requirements:
        definition = requirement.maintenance
        km_freq, days_freq = overdue.effective_frequencies(
            requirement.kilometers_frequency,
            requirement.days_frequency,
            definition.kilometers_frequency,
            definition.days_frequency,
        )
        for vehicle in by_model.get(requirement.model_id, []):
            reading = readings.get(vehicle.id)
            current_km = reading.kilometers if reading else 0
            last = records.get((vehicle.id, requirement.maintenance_id))
            result = overdue.evaluate(
                today,
                current_km,
                km_freq,
                days_freq,
                last_date=_as_date(last.date) if last else None,
                last_kilometers=last.kilometers if last else None,
                registration_date=vehicle.registration_date,
                tolerance_days=tolerance_days,
            )
            model_name, brand_name = _names(vehicle)
            rows.append({
                "vehicle_id": vehicle.id,
                "license_plate": vehicle.license_plate,
                "model_id": requirement.model_id,
                "model_name": model_name,
                "brand_name": brand_name,
                "requirement_id": requirement.id,
                "maintenance_id": requirement.maintenance_id,
                "maintenance_name": definition.name,
                "kilometers_frequency": km_freq,
                "days_frequency": days_freq,
                "last_maintenance_date": _as_date(last.date) if last else None,
                "last_maintenance_kilometers": last.kilometers if last else None,
                "current_kilometers": current_km,
                "due_date": result.due_date,
                "due_kilometers": result.due_kilometers,
                "days_overdue": result.days_overdue,
                "kilometers_overdue": result.kilometers_overdue,
                "overdue_by_days": result.overdue_by_days,
                "overdue_by_kilometers": result.overdue_by_kilometers,
                "overdue": result.overdue,
            })
    return rows


def overdue_maintenance_rows(
    db: Session,
    today: Optional[date] = None,
    tolerance_days: int = 0,
    maintenance_id: Optional[uuid.UUID] = None,
    model_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
) -> List[dict]:
    rows = [
        row
        for row in evaluate_requirements(db, today, tolerance_days, maintenance_id, model_id)
        if row["overdue"]
        and _matches(search, row["license_plate"], row["maintenance_name"], row["model_name"], row["brand_name"])
    ]
    rows.sort(key=lambda r: (r["license_plate"], r["maintenance_name"]))
    return rows


def overdue_maintenance_groups(
    db: Session,
    today: Optional[date] = None,
    tolerance_days: int = 0,
    maintenance_id: Optional[uuid.UUID] = None,
    model_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """Overdue rows grouped by requirement."""
    groups = OrderedDict()
    rows = overdue_maintenance_rows(db, today, tolerance_days, maintenance_id, model_id, search)
    for row in sorted(rows, key=lambda r: (r["maintenance_name"], r["model_name"] or "", r["license_plate"])):
        group = groups.get(row["requirement_id"])
        if group is None:
            group = groups[row["requirement_id"]] = {
                "requirement_id": row["requirement_id"],
                "maintenance_id": row["maintenance_id"],
                "maintenance_name": row["maintenance_name"],
                "model_id": row["model_id"],
                "model_name": row["model_name"],
                "brand_name": row["brand_name"],
                "kilometers_frequency": row["kilometers_frequency"],
                "days_frequency": row["days_frequency"],
                "affected_vehicles_count": 0,
                "vehicles": [],
            }
        group["vehicles"].append({
            key: row[key]
            for key in (
                "vehicle_id", "license_plate", "current_kilometers", "last_maintenance_date",
                "last_maintenance_kilometers", "due_date", "due_kilometers", "days_overdue", "kilometers_overdue",
            )
        })
        group["affected_vehicles_count"] += 1
    return list(groups.values())


def _controls(db: Session, year: Optional[int], quarter: Optional[int]):
    query = db.query(QuarterlyControl)
    if year:
        query = query.filter(QuarterlyControl.year == year)
    if quarter:
        query = query.filter(QuarterlyControl.quarter == quarter)
    return query


def overdue_quarterly_controls(
    db: Session,
    today: Optional[date] = None,
    tolerance_days: int = 0,
    year: Optional[int] = None,
    quarter: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """Controls past their delivery date that are unfilled or still have pending items; oldest first."""
    today = today or date.today()
    cutoff = today - timedelta(days=tolerance_days)

    controls = (
        _controls(db, year, quarter)
        .filter(QuarterlyControl.intended_delivery_date < cutoff)
        .order_by(QuarterlyControl.intended_delivery_date)
        .all()
    )

    rows = []
    for control in controls:
        pending = sum(1 for item in control.items if item.status == ControlItemStatus.PENDING.value)
        if control.filled_at is not None and pending == 0:
            continue
        if not _matches(search, control.vehicle.license_plate):
            continue
        rows.append({
            "control_id": control.id,
            "vehicle_id": control.vehicle_id,
            "license_plate": control.vehicle.license_plate,
            "year": control.year,
            "quarter": control.quarter,
            "intended_delivery_date": control.intended_delivery_date,
            "days_overdue": (today - control.intended_delivery_date).days,
            "filled": control.filled_at is not None,
            "pending_items": pending,
            "total_items": len(control.items),
        })
    return rows


def quarterly_controls_with_errors(
    db: Session,
    min_rejected_items: int = 1,
    year: Optional[int] = None,
    quarter: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """Controls with at least ``min_rejected_items`` rejected items; newest period first."""
    controls = (
        _controls(db, year, quarter)
        .order_by(QuarterlyControl.year.desc(), QuarterlyControl.quarter.desc())
        .all()
    )

    rows = []
    for control in controls:
        rejected = [item.title for item in control.items if item.status == ControlItemStatus.REJECTED.value]
        if len(rejected) < max(min_rejected_items, 1):
            continue
        if not _matches(search, control.vehicle.license_plate):
            continue
        rows.append({
            "control_id": control.id,
            "vehicle_id": control.vehicle_id,
            "license_plate": control.vehicle.license_plate,
            "year": control.year,
            "quarter": control.quarter,
            "filled_at": control.filled_at,
            "rejected_items": len(rejected),
            "total_items": len(control.items),
            "rejected_titles": rejected,
        })
    return rows


def vehicles_without_recent_kilometers(
    db: Session,
    today: Optional[date] = None,
    days_without_update: Optional[int] = None,
    search: Optional[str] = None,
) -> List[dict]:
    """Vehicles with no reading, or whose latest one is more than N days old."""
    today = today or date.today()
    if days_without_update is None:
        days_without_update = settings.RISK_DEFAULT_DAYS_WITHOUT_KILOMETERS

    vehicles = db.query(Vehicle).order_by(Vehicle.license_plate).all()
    readings = kilometers.latest_readings(db, [v.id for v in vehicles])

    rows = []
    for vehicle in vehicles:
        reading = readings.get(vehicle.id)
        days_since = (today - _as_date(reading.date)).days if reading else -1
        if reading and days_since <= days_without_update:
            continue
        model_name, brand_name = _names(vehicle)
        if not _matches(search, vehicle.license_plate, model_name, brand_name):
            continue
        rows.append({
            "vehicle_id": vehicle.id,
            "license_plate": vehicle.license_plate,
            "model_name": model_name,
            "brand_name": brand_name,
            "last_kilometers": reading.kilometers if reading else None,
            "last_update": reading.date if reading else None,
            "days_since_last_update": days_since,
        })

    # Never-reported vehicles first, then the stalest
    rows.sort(key=lambda r: (r["days_since_last_update"] != -1, -r["days_since_last_update"]))
    return rows


def _severity(count: int, level: str) -> str:
    return level if count > 0 else "low"


def summary(
    db: Session,
    today: Optional[date] = None,
    tolerance_days: int = 0,
    days_without_update: Optional[int] = None,
) -> List[dict]:
    today = today or date.today()
    counts = [
        (
            "vehicles-without-responsible",
            "Vehículos sin responsable",
            len(vehicles_without_responsible(db, today)),
            "high",
        ),
        (
            "overdue-maintenance",
            "Mantenimientos vencidos",
            len(overdue_maintenance_rows(db, today, tolerance_days)),
            "high",
        ),
        (
            "overdue-quarterly-controls",
            "Controles trimestrales vencidos",
            len(overdue_quarterly_controls(db, today, tolerance_days)),
            "high",
        ),
        (
            "quarterly-controls-with-errors",
            "Controles con rechazos",
            len(quarterly_controls_with_errors(db)),
            "medium",
        ),
        (
            "vehicles-without-recent-kilometers",
            "Sin registro de km reciente",
            len(vehicles_without_recent_kilometers(db, today, days_without_update)),
            "medium",
        ),
    ]
    logger.debug(f"Risk summary for {today}: {[(key, count) for key, _, count, _ in counts]}")
    return [
        {"key": key, "label": label, "count": count, "severity": _severity(count, level)}
        for key, label, count, level in counts
    ]
