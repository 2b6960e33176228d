"""Fleet dashboard aggregates.

Like the risk indicators, every date window is anchored on an injectable
``today``.
"""
import calendar
import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from fleet_api.models.access import Reservation, VehicleAcl
from fleet_api.models.enums import ControlItemStatus, PermissionType, allowed_permissions
from fleet_api.models.maintenance import MaintenanceRecord
from fleet_api.models.quarterly_control import QuarterlyControl
from fleet_api.models.vehicle import Vehicle, VehicleBrand, VehicleModel, VehicleResponsible
from fleet_api.services import kilometers

logger = logging.getLogger(__name__)

ALWAYS_SHOWN_BUCKETS = 5
NO_READING = "Sin registro"
NO_FUEL_TYPE = "No especificado"
NO_BRAND = "Sin marca"


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    return value.date() if isinstance(value, datetime) else value


def _month_windows(today: date, months: int) -> List[Tuple[str, date, date]]:
    """(``YYYY-MM``, first day, last day) for the last ``months`` months, oldest first."""
    windows = []
    for back in range(months - 1, -1, -1):
        year, month = divmod(today.year * 12 + today.month - 1 - back, 12)
        month += 1
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        windows.append((f"{year:04d}-{month:02d}", first, last))
    return windows


def _buckets(values: List[int], bucket_size: int, max_buckets: int, label) -> List[dict]:
    """Fixed-width buckets; the last one is open ended. Empty buckets past the fifth are dropped."""
    buckets = []
    for i in range(max_buckets):
        low, high = i * bucket_size, (i + 1) * bucket_size
        last = i == max_buckets - 1
        count = sum(1 for v in values if v >= low and (last or v < high))
        if count or i < ALWAYS_SHOWN_BUCKETS:
            buckets.append({"label": label(low, high, last), "min": low, "max": None if last else high, "count": count})
    return buckets


def vehicle_count(db: Session) -> int:
    return db.query(func.count(Vehicle.id)).scalar()


def vehicles_by_kilometers(db: Session, bucket_size: int = 20000, max_buckets: int = 10) -> List[dict]:
    """Vehicles bucketed by their latest odometer reading."""
    latest = kilometers.latest_readings(db)
    without_reading = vehicle_count(db) - len(latest)

    def label(low, high, last):
        if last:
            return f"{low // 1000}k+ km"
        return f"{low // 1000}k-{high // 1000}k km"

    buckets = _buckets([r.kilometers for r in latest.values()], bucket_size, max_buckets, label)
    if without_reading:
        buckets.append({"label": NO_READING, "min": -1, "max": -1, "count": without_reading})
    return buckets


def vehicles_by_age(
    db: Session, today: Optional[date] = None, bucket_size: int = 1, max_buckets: int = 10
) -> List[dict]:
    """Vehicles bucketed by model year age."""
    today = today or date.today()
    ages = [today.year - year for (year,) in db.query(Vehicle.year)]

    def label(low, high, last):
        if last:
            return f"{low}+ años"
        if bucket_size == 1:
            return f"{low} año" if low == 1 else f"{low} años"
        return f"{low}-{high - 1} años"

    return _buckets(ages, bucket_size, max_buckets, label)


def vehicles_by_fuel_type(db: Session, limit: Optional[int] = None) -> List[dict]:
    count = func.count(Vehicle.id).label("count")
    query = db.query(Vehicle.fuel_type, count).group_by(Vehicle.fuel_type).order_by(count.desc(), Vehicle.fuel_type)
    if limit:
        query = query.limit(limit)
    return [
        {"id": fuel_type or None, "name": fuel_type or NO_FUEL_TYPE, "count": total}
        for fuel_type, total in query.all()
    ]


def vehicles_by_brand(db: Session, limit: Optional[int] = None) -> List[dict]:
    """Vehicles per brand; the id allows drilling down with ``GET /vehicles?brand_id=``."""
    count = func.count(Vehicle.id).label("count")
    query = (
        db.query(VehicleBrand.id, VehicleBrand.name, count)
        .select_from(Vehicle)
        .outerjoin(VehicleModel, Vehicle.model_id == VehicleModel.id)
        .outerjoin(VehicleBrand, VehicleModel.brand_id == VehicleBrand.id)
        .group_by(VehicleBrand.id, VehicleBrand.name)
        .order_by(count.desc(), VehicleBrand.name)
    )
    if limit:
        query = query.limit(limit)
    return [
        {"id": str(brand_id) if brand_id else None, "name": name or NO_BRAND, "count": total}
        for brand_id, name, total in query.all()
    ]


def _timeline(dates: Iterable[date], today: date, months: int) -> List[dict]:
    timeline = OrderedDict((key, 0) for key, _, _ in _month_windows(today, months))
    for value in dates:
        key = f"{value.year:04d}-{value.month:02d}"
        if key in timeline:
            timeline[key] += 1
    return [{"month": key, "count": count} for key, count in timeline.items()]


def reservations_by_month(db: Session, today: Optional[date] = None, months: int = 12) -> List[dict]:
    """Reservations counted by the month they start in."""
    today = today or date.today()
    since = datetime.combine(_month_windows(today, months)[0][1], datetime.min.time())
    starts = db.query(Reservation.start_date).filter(Reservation.start_date >= since)
    return _timeline((start for (start,) in starts), today, months)


def maintenance_records_by_month(db: Session, today: Optional[date] = None, months: int = 12) -> List[dict]:
    today = today or date.today()
    since = datetime.combine(_month_windows(today, months)[0][1], datetime.min.time())
    dates = db.query(MaintenanceRecord.date).filter(MaintenanceRecord.date >= since)
    return _timeline((value for (value,) in dates), today, months)


def _control_status(control: QuarterlyControl, today: date) -> Optional[str]:
    if control.filled_at is None and control.intended_delivery_date < today:
        return "overdue"
    statuses = [item.status for item in control.items]
    if ControlItemStatus.REJECTED.value in statuses:
        return "rejected"
    if statuses and all(s == ControlItemStatus.APPROVED.value for s in statuses):
        return "approved"
    if ControlItemStatus.PENDING.value in statuses:
        return "pending"
    return None


def quarterly_controls_by_status(db: Session, today: Optional[date] = None, periods: int = 8) -> List[dict]:
    """Per quarter, newest first: how many controls are approved, pending, rejected or overdue.

    An unfilled control past its delivery date counts as overdue whatever its
    items say. Otherwise any rejection wins, then all-approved, then pending.
    """
    today = today or date.today()
    controls = (
        db.query(QuarterlyControl)
        .order_by(QuarterlyControl.year.desc(), QuarterlyControl.quarter.desc())
        .all()
    )

    grouped = OrderedDict()
    for control in controls:
        key = (control.year, control.quarter)
        if key not in grouped:
            if len(grouped) == periods:
                break
            grouped[key] = {
                "year": control.year,
                "quarter": control.quarter,
                "label": f"{control.year}-Q{control.quarter}",
                "total": 0,
                "approved": 0,
                "pending": 0,
                "rejected": 0,
                "overdue": 0,
            }
        metric = grouped[key]
        metric["total"] += 1
        status = _control_status(control, today)
        if status:
            metric[status] += 1
    return list(grouped.values())


def _active_by_month(periods: List[Tuple[date, Optional[date]]], today: date, months: int) -> List[dict]:
    """How many periods overlap each month."""
    return [
        {
            "month": key,
            "count": sum(1 for start, end in periods if start <= last and (end is None or end >= first)),
        }
        for key, first, last in _month_windows(today, months)
    ]


def _driver_grants(db: Session):
    granted = [p.value for p in allowed_permissions(PermissionType.DRIVER)]
    return db.query(VehicleAcl).filter(VehicleAcl.permission.in_(granted))


def drivers(db: Session, today: Optional[date] = None, months: int = 12) -> dict:
    """ACL grants that allow driving: how many are in force today, and per month."""
    today = today or date.today()
    now = datetime.combine(today, datetime.min.time())
    current = (
        _driver_grants(db)
        .filter(or_(VehicleAcl.end_time.is_(None), VehicleAcl.end_time >= now))
        .count()
    )
    periods = [(_as_date(g.start_time), _as_date(g.end_time)) for g in _driver_grants(db)]
    return {"current": current, "timeline": _active_by_month(periods, today, months)}


def responsibles(db: Session, today: Optional[date] = None, months: int = 12) -> dict:
    today = today or date.today()
    current = (
        db.query(VehicleResponsible)
        .filter(or_(VehicleResponsible.end_date.is_(None), VehicleResponsible.end_date >= today))
        .count()
    )
    periods = db.query(VehicleResponsible.start_date, VehicleResponsible.end_date).all()
    return {"current": current, "timeline": _active_by_month(periods, today, months)}
