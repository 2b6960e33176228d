import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import check_vehicle_permission, require_admin, require_user
from fleet_api.core.security import AuthenticatedUser
from fleet_api.models.enums import PermissionType
from fleet_api.models.quarterly_control import QuarterlyControl
from fleet_api.models.vehicle import Vehicle
from fleet_api.schemas.quarterly_control import (
    ControlCreate, ControlDetailResponse, ControlFill, ControlResponse, ControlUpdate,
    ControlWithItemsCreate, GenerateRequest, GenerateResponse,
)
from fleet_api.services import quarterly_controls

router = APIRouter()


@router.get("", response_model=Page[ControlResponse], dependencies=[Depends(require_user)])
def get_controls(
    vehicle_id: Optional[uuid.UUID] = None,
    year: Optional[int] = None,
    quarter: Optional[int] = Query(None, ge=1, le=4),
    filled: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get quarterly controls, newest period first."""
    query = db.query(QuarterlyControl).join(Vehicle, QuarterlyControl.vehicle_id == Vehicle.id)
    if vehicle_id:
        query = query.filter(QuarterlyControl.vehicle_id == vehicle_id)
    if year:
        query = query.filter(QuarterlyControl.year == year)
    if quarter:
        query = query.filter(QuarterlyControl.quarter == quarter)
    if filled is True:
        query = query.filter(QuarterlyControl.filled_at.isnot(None))
    elif filled is False:
        query = query.filter(QuarterlyControl.filled_at.is_(None))
    query = apply_search(query, params.search, [Vehicle.license_plate])
    query = query.order_by(QuarterlyControl.year.desc(), QuarterlyControl.quarter.desc(), Vehicle.license_plate)
    items, total = paginate_query(query, params)
    return paginated(items, total, params)


@router.post("/with-items", response_model=ControlDetailResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_control_with_items(control: ControlWithItemsCreate, db: Session = Depends(get_db)):
    """Create a control with its checklist (default checklist when items are omitted)."""
    return quarterly_controls.create_with_items(db, control)


@router.post("/generate", response_model=GenerateResponse, dependencies=[Depends(require_admin)])
def generate_controls(request: Optional[GenerateRequest] = None, db: Session = Depends(get_db)):
    """Create this quarter's controls for every vehicle that lacks one."""
    request = request or GenerateRequest()
    return quarterly_controls.generate(db, request.year, request.quarter)


@router.get("/{control_id}", response_model=ControlDetailResponse, dependencies=[Depends(require_user)])
def get_control(control_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a control with its items."""
    return get_or_404(db, QuarterlyControl, control_id, "Quarterly control")


@router.post("", response_model=ControlResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_control(control: ControlCreate, db: Session = Depends(get_db)):
    """Create a control without items."""
    return quarterly_controls.create_control(db, control)


@router.patch("/{control_id}/with-items", response_model=ControlDetailResponse)
def fill_control(
    control_id: uuid.UUID,
    fill: ControlFill,
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Fill a control: report kilometers and set every item's status."""
    control = get_or_404(db, QuarterlyControl, control_id, "Quarterly control")
    check_vehicle_permission(db, user, control.vehicle_id, PermissionType.DRIVER)
    return quarterly_controls.patch_with_items(db, control, fill, user.id)


@router.patch("/{control_id}", response_model=ControlResponse, dependencies=[Depends(require_admin)])
def update_control(control_id: uuid.UUID, control: ControlUpdate, db: Session = Depends(get_db)):
    """Update a control."""
    db_control = get_or_404(db, QuarterlyControl, control_id, "Quarterly control")
    return quarterly_controls.update_control(db, db_control, control)


@router.delete("/{control_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_control(control_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a control and its items."""
    db_control = get_or_404(db, QuarterlyControl, control_id, "Quarterly control")
    db.delete(db_control)
    db.commit()
    return Response(status_code=204)
