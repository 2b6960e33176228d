import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.pagination import Page, PageParams, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.vehicle import VehicleResponsible
from fleet_api.schemas.vehicle import ResponsibleCreate, ResponsibleResponse, ResponsibleUpdate
from fleet_api.services import responsibles

router = APIRouter()


@router.get("", response_model=Page[ResponsibleResponse], dependencies=[Depends(require_user)])
def get_responsibles(
    vehicle_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    active_at: Optional[date] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get responsibility periods, newest first."""
    query = db.query(VehicleResponsible)
    if vehicle_id:
        query = query.filter(VehicleResponsible.vehicle_id == vehicle_id)
    if user_id:
        query = query.filter(VehicleResponsible.user_id == user_id)
    if active_at:
        query = query.filter(
            VehicleResponsible.start_date <= active_at,
            or_(VehicleResponsible.end_date.is_(None), VehicleResponsible.end_date >= active_at),
        )
    items, total = paginate_query(query.order_by(VehicleResponsible.start_date.desc()), params)
    return paginated(items, total, params)


@router.get("/{responsible_id}", response_model=ResponsibleResponse, dependencies=[Depends(require_user)])
def get_responsible(responsible_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific responsibility period."""
    return get_or_404(db, VehicleResponsible, responsible_id, "Vehicle responsible")


@router.post("", response_model=ResponsibleResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_responsible(responsible: ResponsibleCreate, db: Session = Depends(get_db)):
    """Make a user responsible for a vehicle."""
    return responsibles.add_responsible(db, responsible)


@router.patch("/{responsible_id}", response_model=ResponsibleResponse, dependencies=[Depends(require_admin)])
def update_responsible(responsible_id: uuid.UUID, responsible: ResponsibleUpdate, db: Session = Depends(get_db)):
    """Update a responsibility period."""
    db_responsible = get_or_404(db, VehicleResponsible, responsible_id, "Vehicle responsible")
    return responsibles.update_responsible(db, db_responsible, responsible)


@router.delete("/{responsible_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_responsible(responsible_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a responsibility period."""
    db_responsible = get_or_404(db, VehicleResponsible, responsible_id, "Vehicle responsible")
    db.delete(db_responsible)
    db.commit()
    return Response(status_code=204)
