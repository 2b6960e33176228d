import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import check_vehicle_permission, require_admin, require_user
from fleet_api.core.security import AuthenticatedUser
from fleet_api.models.enums import PermissionType
from fleet_api.models.maintenance import (
    Maintenance, MaintenanceCategory, MaintenanceRecord, MaintenanceRequirement,
)
from fleet_api.models.vehicle import VehicleBrand, VehicleModel
from fleet_api.schemas.maintenance import (
    CategoryCreate, CategoryResponse, CategoryUpdate,
    MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate,
    RecordCreate, RecordResponse, RecordUpdate,
    RequirementCreate, RequirementResponse, RequirementUpdate,
)
from fleet_api.services import maintenance as maintenance_service

logger = logging.getLogger(__name__)

router = APIRouter()


# Categories

@router.get("/categories", response_model=Page[CategoryResponse], dependencies=[Depends(require_user)])
def get_categories(params: PageParams = Depends(page_params), db: Session = Depends(get_db)):
    """Get maintenance categories."""
    query = apply_search(db.query(MaintenanceCategory), params.search, [MaintenanceCategory.name])
    items, total = paginate_query(query.order_by(MaintenanceCategory.name), params)
    return paginated(items, total, params)


@router.get("/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_user)])
def get_category(category_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific category."""
    return get_or_404(db, MaintenanceCategory, category_id, "Maintenance category")


@router.post("/categories", response_model=CategoryResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_category(category: CategoryCreate, db: Session = Depends(get_db)):
    """Create a category."""
    db_category = MaintenanceCategory(name=category.name)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.patch("/categories/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
def update_category(category_id: uuid.UUID, category: CategoryUpdate, db: Session = Depends(get_db)):
    """Rename a category."""
    db_category = get_or_404(db, MaintenanceCategory, category_id, "Maintenance category")
    if category.name is not None:
        db_category.name = category.name
    db.commit()
    db.refresh(db_category)
    return db_category


@router.delete("/categories/{category_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_category(category_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a category and its maintenances."""
    db_category = get_or_404(db, MaintenanceCategory, category_id, "Maintenance category")
    db.delete(db_category)
    db.commit()
    return Response(status_code=204)


# Maintenance definitions

@router.get("/maintenances", response_model=Page[MaintenanceResponse], dependencies=[Depends(require_user)])
def get_maintenances(
    category_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get maintenance definitions."""
    query = db.query(Maintenance)
    if category_id:
        query = query.filter(Maintenance.category_id == category_id)
    query = apply_search(query, params.search, [Maintenance.name])
    items, total = paginate_query(query.order_by(Maintenance.name), params)
    return paginated(items, total, params)


@router.get("/maintenances/{maintenance_id}", response_model=MaintenanceResponse, dependencies=[Depends(require_user)])
def get_maintenance(maintenance_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific maintenance definition."""
    return get_or_404(db, Maintenance, maintenance_id, "Maintenance")


@router.post("/maintenances", response_model=MaintenanceResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_maintenance(maintenance: MaintenanceCreate, db: Session = Depends(get_db)):
    """Create a maintenance definition."""
    get_or_404(db, MaintenanceCategory, maintenance.category_id, "Maintenance category")
    db_maintenance = Maintenance(**maintenance.model_dump())
    db.add(db_maintenance)
    db.commit()
    db.refresh(db_maintenance)
    return db_maintenance


@router.patch("/maintenances/{maintenance_id}", response_model=MaintenanceResponse, dependencies=[Depends(require_admin)])
def update_maintenance(maintenance_id: uuid.UUID, maintenance: MaintenanceUpdate, db: Session = Depends(get_db)):
    """Update a maintenance definition."""
    db_maintenance = get_or_404(db, Maintenance, maintenance_id, "Maintenance")
    update_data = maintenance.model_dump(exclude_unset=True)
    if update_data.get("category_id") is not None:
        get_or_404(db, MaintenanceCategory, update_data["category_id"], "Maintenance category")

    for key, value in update_data.items():
        setattr(db_maintenance, key, value)

    db.commit()
    db.refresh(db_maintenance)
    return db_maintenance


@router.delete("/maintenances/{maintenance_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_maintenance(maintenance_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a maintenance definition."""
    db_maintenance = get_or_404(db, Maintenance, maintenance_id, "Maintenance")
    db.delete(db_maintenance)
    db.commit()
    return Response(status_code=204)


# Requirements

@router.get("/requirements", response_model=Page[RequirementResponse], dependencies=[Depends(require_user)])
def get_requirements(
    model_id: Optional[uuid.UUID] = None,
    maintenance_id: Optional[uuid.UUID] = None,
    active_at: Optional[date] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get maintenance requirements."""
    query = (
        db.query(MaintenanceRequirement)
        .join(VehicleModel, MaintenanceRequirement.model_id == VehicleModel.id)
        .outerjoin(VehicleBrand, VehicleModel.brand_id == VehicleBrand.id)
        .join(Maintenance, MaintenanceRequirement.maintenance_id == Maintenance.id)
        .outerjoin(MaintenanceCategory, Maintenance.category_id == MaintenanceCategory.id)
    )
    if model_id:
        query = query.filter(MaintenanceRequirement.model_id == model_id)
    if maintenance_id:
        query = query.filter(MaintenanceRequirement.maintenance_id == maintenance_id)
    if active_at:
        query = query.filter(
            MaintenanceRequirement.start_date <= active_at,
            or_(MaintenanceRequirement.end_date.is_(None), MaintenanceRequirement.end_date >= active_at),
        )
    query = apply_search(
        query, params.search, [VehicleModel.name, VehicleBrand.name, Maintenance.name, MaintenanceCategory.name]
    )
    items, total = paginate_query(query.order_by(MaintenanceRequirement.start_date.desc()), params)
    return paginated(items, total, params)


@router.get("/requirements/{requirement_id}", response_model=RequirementResponse, dependencies=[Depends(require_user)])
def get_requirement(requirement_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific requirement."""
    return get_or_404(db, MaintenanceRequirement, requirement_id, "Maintenance requirement")


@router.post(
    "/requirements", response_model=RequirementResponse, status_code=201, dependencies=[Depends(require_admin)]
)
def create_requirement(requirement: RequirementCreate, db: Session = Depends(get_db)):
    """Create a requirement for a vehicle model."""
    return maintenance_service.create_requirement(db, requirement)


@router.patch("/requirements/{requirement_id}", response_model=RequirementResponse, dependencies=[Depends(require_admin)])
def update_requirement(requirement_id: uuid.UUID, requirement: RequirementUpdate, db: Session = Depends(get_db)):
    """Update a requirement."""
    db_requirement = get_or_404(db, MaintenanceRequirement, requirement_id, "Maintenance requirement")
    return maintenance_service.update_requirement(db, db_requirement, requirement)


@router.delete("/requirements/{requirement_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_requirement(requirement_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a requirement."""
    db_requirement = get_or_404(db, MaintenanceRequirement, requirement_id, "Maintenance requirement")
    db.delete(db_requirement)
    db.commit()
    return Response(status_code=204)


# Records

@router.get("/records", response_model=Page[RecordResponse], dependencies=[Depends(require_user)])
def get_records(
    vehicle_id: Optional[uuid.UUID] = None,
    maintenance_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get maintenance records, newest first."""
    query = db.query(MaintenanceRecord)
    if vehicle_id:
        query = query.filter(MaintenanceRecord.vehicle_id == vehicle_id)
    if maintenance_id:
        query = query.filter(MaintenanceRecord.maintenance_id == maintenance_id)
    if user_id:
        query = query.filter(MaintenanceRecord.user_id == user_id)
    items, total = paginate_query(query.order_by(MaintenanceRecord.date.desc()), params)
    return paginated(items, total, params)


@router.get("/records/{record_id}", response_model=RecordResponse, dependencies=[Depends(require_user)])
def get_record(record_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific maintenance record."""
    return get_or_404(db, MaintenanceRecord, record_id, "Maintenance record")


@router.post("/records", response_model=RecordResponse, status_code=201)
def create_record(
    record: RecordCreate,
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Record a performed maintenance and the odometer reading it was done at."""
    check_vehicle_permission(db, user, record.vehicle_id, PermissionType.MAINTAINER)
    return maintenance_service.create_record(db, record, user.id)


@router.patch("/records/{record_id}", response_model=RecordResponse, dependencies=[Depends(require_admin)])
def update_record(record_id: uuid.UUID, record: RecordUpdate, db: Session = Depends(get_db)):
    """Update a maintenance record."""
    db_record = get_or_404(db, MaintenanceRecord, record_id, "Maintenance record")
    return maintenance_service.update_record(db, db_record, record)


@router.delete("/records/{record_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_record(record_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a maintenance record."""
    db_record = get_or_404(db, MaintenanceRecord, record_id, "Maintenance record")
    db.delete(db_record)
    db.commit()
    logger.info(f"Deleted maintenance record {record_id}")
    return Response(status_code=204)
