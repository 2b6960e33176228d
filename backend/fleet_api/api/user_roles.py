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
from fleet_api.models.enums import UserRoleType
from fleet_api.models.user import User, UserRole
from fleet_api.schemas.user import UserRoleCreate, UserRoleEnd, UserRoleResponse, UserRoleUpdate

router = APIRouter()


def _check_range(start_time: datetime, end_time: Optional[datetime]):
    if end_time is not None and end_time <= start_time:
        raise bad_request("end_time must be after start_time", "invalid-time-range", "Invalid Time Range")


@router.get("", response_model=Page[UserRoleResponse], dependencies=[Depends(require_user)])
def get_user_roles(
    user_id: Optional[uuid.UUID] = None,
    role: Optional[UserRoleType] = None,
    active_at: Optional[datetime] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get role assignments."""
    query = db.query(UserRole)
    if user_id:
        query = query.filter(UserRole.user_id == user_id)
    if role:
        query = query.filter(UserRole.role == role.value)
    if active_at:
        query = query.filter(
            UserRole.start_time <= active_at,
            or_(UserRole.end_time.is_(None), UserRole.end_time > active_at),
        )
    items, total = paginate_query(query.order_by(UserRole.start_time.desc()), params)
    return paginated(items, total, params)


@router.get("/{role_id}", response_model=UserRoleResponse, dependencies=[Depends(require_user)])
def get_user_role(role_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific role assignment."""
    return get_or_404(db, UserRole, role_id, "User role")


@router.post("", response_model=UserRoleResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_user_role(user_role: UserRoleCreate, db: Session = Depends(get_db)):
    """Assign a role to a user."""
    get_or_404(db, User, user_role.user_id, "User")
    db_role = UserRole(
        user_id=user_role.user_id,
        role=user_role.role.value,
        start_time=user_role.start_time,
        end_time=user_role.end_time,
    )
    db.add(db_role)
    db.commit()
    db.refresh(db_role)
    return db_role


@router.patch("/{role_id}", response_model=UserRoleResponse, dependencies=[Depends(require_admin)])
def update_user_role(role_id: uuid.UUID, user_role: UserRoleUpdate, db: Session = Depends(get_db)):
    """Update a role assignment."""
    db_role = get_or_404(db, UserRole, role_id, "User role")
    update_data = user_role.model_dump(exclude_unset=True)
    if update_data.get("role") is not None:
        update_data["role"] = update_data["role"].value
    _check_range(update_data.get("start_time", db_role.start_time), update_data.get("end_time", db_role.end_time))

    for key, value in update_data.items():
        setattr(db_role, key, value)

    db.commit()
    db.refresh(db_role)
    return db_role


@router.post("/{role_id}/end", response_model=UserRoleResponse, dependencies=[Depends(require_admin)])
def end_user_role(role_id: uuid.UUID, body: Optional[UserRoleEnd] = None, db: Session = Depends(get_db)):
    """Close a role assignment now, or at the given end_time."""
    db_role = get_or_404(db, UserRole, role_id, "User role")
    end_time = (body.end_time if body else None) or datetime.now()
    _check_range(db_role.start_time, end_time)

    db_role.end_time = end_time
    db.commit()
    db.refresh(db_role)
    return db_role


@router.delete("/{role_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_user_role(role_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a role assignment."""
    db_role = get_or_404(db, UserRole, role_id, "User role")
    db.delete(db_role)
    db.commit()
    return Response(status_code=204)
