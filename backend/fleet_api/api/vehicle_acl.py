import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.errors import bad_request
from fleet_api.core.pagination import Page, PageParams, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.access import VehicleAcl
from fleet_api.models.enums import PermissionType
from fleet_api.models.user import User
from fleet_api.models.vehicle import Vehicle
from fleet_api.schemas.access import AclCreate, AclResponse, AclUpdate

router = APIRouter()


@router.get("", response_model=Page[AclResponse], dependencies=[Depends(require_user)])
def get_acl_entries(
    user_id: Optional[uuid.UUID] = None,
    vehicle_id: Optional[uuid.UUID] = None,
    permission: Optional[PermissionType] = None,
    active_at: Optional[datetime] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get vehicle access grants."""
    query = db.query(VehicleAcl)
    if user_id:
        query = query.filter(VehicleAcl.user_id == user_id)
    if vehicle_id:
        query = query.filter(VehicleAcl.vehicle_id == vehicle_id)
    if permission:
        query = query.filter(VehicleAcl.permission == permission.value)
    if active_at:
        query = query.filter(
            VehicleAcl.start_time <= active_at,
            or_(VehicleAcl.end_time.is_(None), VehicleAcl.end_time > active_at),
        )
    items, total = paginate_query(query.order_by(VehicleAcl.start_time.desc()), params)
    return paginated(items, total, params)


@router.get("/{acl_id}", response_model=AclResponse, dependencies=[Depends(require_user)])
def get_acl_entry(acl_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific access grant."""
    return get_or_404(db, VehicleAcl, acl_id, "Vehicle ACL")


@router.post("", response_model=AclResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_acl_entry(acl: AclCreate, db: Session = Depends(get_db)):
    """Grant a user a permission on a vehicle."""
    get_or_404(db, User, acl.user_id, "User")
    get_or_404(db, Vehicle, acl.vehicle_id, "Vehicle")
    db_acl = VehicleAcl(
        user_id=acl.user_id,
        vehicle_id=acl.vehicle_id,
        permission=acl.permission.value,
        start_time=acl.start_time,
        end_time=acl.end_time,
    )
    db.add(db_acl)
    db.commit()
    db.refresh(db_acl)
    return db_acl


@router.patch("/{acl_id}", response_model=AclResponse, dependencies=[Depends(require_admin)])
def update_acl_entry(acl_id: uuid.UUID, acl: AclUpdate, db: Session = Depends(get_db)):
    """Update an access grant."""
    db_acl = get_or_404(db, VehicleAcl, acl_id, "Vehicle ACL")
    update_data = acl.model_dump(exclude_unset=True)
    if update_data.get("permission") is not None:
        update_data["permission"] = update_data["permission"].value

    start_time = update_data.get("start_time", db_acl.start_time)
    end_time = update_data.get("end_time", db_acl.end_time)
    if end_time is not None and end_time <= start_time:
        raise bad_request("end_time must be after start_time", "invalid-time-range", "Invalid Time Range")

    for key, value in update_data.items():
        setattr(db_acl, key, value)

    db.commit()
    db.refresh(db_acl)
    return db_acl


@router.delete("/{acl_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_acl_entry(acl_id: uuid.UUID, db: Session = Depends(get_db)):
    """Revoke an access grant."""
    db_acl = get_or_404(db, VehicleAcl, acl_id, "Vehicle ACL")
    db.delete(db_acl)
    db.commit()
    return Response(status_code=204)
