from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db
from fleet_api.core.permissions import require_admin
from fleet_api.schemas.metrics import (
    BucketList, Distribution, PersonnelMetric, QuarterlyControlMetrics, Timeline, VehicleCount,
)
from fleet_api.services import metrics

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/vehicles/count", response_model=VehicleCount)
def get_vehicle_count(db: Session = Depends(get_db)):
    return {"total": metrics.vehicle_count(db)}


@router.get("/vehicles/kilometers", response_model=BucketList)
def get_vehicles_by_kilometers(
    bucket_size: int = Query(20000, ge=1000),
    max_buckets: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """Vehicles by latest odometer reading, plus a bucket for those never reported."""
    return {"buckets": metrics.vehicles_by_kilometers(db, bucket_size, max_buckets)}


@router.get("/vehicles/age", response_model=BucketList)
def get_vehicles_by_age(
    bucket_size: int = Query(1, ge=1),
    max_buckets: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db),
):
    """Vehicles by age in years."""
    return {"buckets": metrics.vehicles_by_age(db, bucket_size=bucket_size, max_buckets=max_buckets)}


@router.get("/vehicles/fuel-type", response_model=Distribution)
def get_vehicles_by_fuel_type(limit: Optional[int] = Query(None, ge=1, le=50), db: Session = Depends(get_db)):
    return {"distribution": metrics.vehicles_by_fuel_type(db, limit)}


@router.get("/vehicles/brand", response_model=Distribution)
def get_vehicles_by_brand(limit: Optional[int] = Query(None, ge=1, le=50), db: Session = Depends(get_db)):
    """Vehicles per brand. Drill down with GET /vehicles?brand_id=..."""
    return {"distribution": metrics.vehicles_by_brand(db, limit)}


@router.get("/reservations", response_model=Timeline)
def get_reservations_timeline(months: int = Query(12, ge=1, le=36), db: Session = Depends(get_db)):
    """Reservations per month of their start date."""
    return {"timeline": metrics.reservations_by_month(db, months=months)}


@router.get("/maintenance-records", response_model=Timeline)
def get_maintenance_records_timeline(months: int = Query(12, ge=1, le=36), db: Session = Depends(get_db)):
    return {"timeline": metrics.maintenance_records_by_month(db, months=months)}


@router.get("/quarterly-controls", response_model=QuarterlyControlMetrics)
def get_quarterly_controls_status(periods: int = Query(8, ge=1, le=20), db: Session = Depends(get_db)):
    """Control outcomes for the latest quarters."""
    return {"metrics": metrics.quarterly_controls_by_status(db, periods=periods)}


@router.get("/drivers", response_model=PersonnelMetric)
def get_drivers(months: int = Query(12, ge=1, le=36), db: Session = Depends(get_db)):
    """Driving grants in force today and per month."""
    return metrics.drivers(db, months=months)


@router.get("/responsibles", response_model=PersonnelMetric)
def get_responsibles(months: int = Query(12, ge=1, le=36), db: Session = Depends(get_db)):
    return metrics.responsibles(db, months=months)
