import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.errors import conflict
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user, require_vehicle_permission
from fleet_api.core.security import AuthenticatedUser
from fleet_api.models.enums import PermissionType
from fleet_api.models.vehicle import Vehicle, VehicleBrand, VehicleModel
from fleet_api.schemas.risk import MaintenanceStatusRow
from fleet_api.schemas.vehicle import (
    KilometersCreate, KilometersResponse, VehicleCreate, VehicleResponse, VehicleUpdate,
)
from fleet_api.services import kilometers, risks

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_plate(db: Session, plate: str, exclude_id=None):
    query = db.query(Vehicle.id).filter(Vehicle.license_plate == plate)
    if exclude_id is not None:
        query = query.filter(Vehicle.id != exclude_id)
    if query.first():
        raise conflict(f"License plate {plate} already registered", "duplicate-license-plate", "Duplicate License Plate")


@router.get("", response_model=Page[VehicleResponse], dependencies=[Depends(require_user)])
def get_vehicles(
    model_id: Optional[uuid.UUID] = None,
    brand_id: Optional[uuid.UUID] = None,
    year: Optional[int] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get vehicles."""
    query = (
        db.query(Vehicle)
        .outerjoin(VehicleModel, Vehicle.model_id == VehicleModel.id)
        .outerjoin(VehicleBrand, VehicleModel.brand_id == VehicleBrand.id)
    )
    if model_id:
        query = query.filter(Vehicle.model_id == model_id)
    if brand_id:
        query = query.filter(VehicleModel.brand_id == brand_id)
    if year:
        query = query.filter(Vehicle.year == year)
    query = apply_search(
        query, params.search, [Vehicle.license_plate, Vehicle.chassis_number, VehicleModel.name, VehicleBrand.name]
    )
    items, total = paginate_query(query.order_by(Vehicle.license_plate), params)
    return paginated(items, total, params)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(
    vehicle_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_vehicle_permission(PermissionType.READ)),
    db: Session = Depends(get_db),
):
    """Get a specific vehicle."""
    return get_or_404(db, Vehicle, vehicle_id, "Vehicle")


@router.post("", response_model=VehicleResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_vehicle(vehicle: VehicleCreate, db: Session = Depends(get_db)):
    """Register a vehicle."""
    if vehicle.model_id is not None:
        get_or_404(db, VehicleModel, vehicle.model_id, "Vehicle model")
    _check_plate(db, vehicle.license_plate)

    db_vehicle = Vehicle(**vehicle.model_dump())
    db.add(db_vehicle)
    db.commit()
    db.refresh(db_vehicle)
    logger.info(f"Registered vehicle {db_vehicle.license_plate}")
    return db_vehicle


@router.patch("/{vehicle_id}", response_model=VehicleResponse, dependencies=[Depends(require_admin)])
def update_vehicle(vehicle_id: uuid.UUID, vehicle: VehicleUpdate, db: Session = Depends(get_db)):
    """Update vehicle information."""
    db_vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    update_data = vehicle.model_dump(exclude_unset=True)
    if update_data.get("model_id") is not None:
        get_or_404(db, VehicleModel, update_data["model_id"], "Vehicle model")
    if update_data.get("license_plate") is not None:
        _check_plate(db, update_data["license_plate"], exclude_id=vehicle_id)

    for key, value in update_data.items():
        setattr(db_vehicle, key, value)

    db.commit()
    db.refresh(db_vehicle)
    return db_vehicle


@router.delete("/{vehicle_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_vehicle(vehicle_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a vehicle."""
    db_vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    db.delete(db_vehicle)
    db.commit()
    logger.info(f"Deleted vehicle {vehicle_id}")
    return Response(status_code=204)


@router.get("/{vehicle_id}/kilometers", response_model=List[KilometersResponse])
def get_vehicle_kilometers(
    vehicle_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_vehicle_permission(PermissionType.READ)),
    db: Session = Depends(get_db),
):
    """Get the odometer history of a vehicle, newest first."""
    return kilometers.list_for_vehicle(db, vehicle_id)


@router.post("/{vehicle_id}/kilometers", response_model=KilometersResponse, status_code=201)
def log_vehicle_kilometers(
    vehicle_id: uuid.UUID,
    reading: KilometersCreate,
    user: AuthenticatedUser = Depends(require_vehicle_permission(PermissionType.DRIVER)),
    db: Session = Depends(get_db),
):
    """Log an odometer reading."""
    return kilometers.log_reading(db, vehicle_id, user.id, reading.date, reading.kilometers)


@router.get("/{vehicle_id}/maintenance-status", response_model=List[MaintenanceStatusRow])
def get_maintenance_status(
    vehicle_id: uuid.UUID,
    tolerance_days: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(require_vehicle_permission(PermissionType.READ)),
    db: Session = Depends(get_db),
):
    """Evaluate every active maintenance requirement for this vehicle."""
    return risks.evaluate_requirements(db, tolerance_days=tolerance_days, vehicle_id=vehicle_id)
