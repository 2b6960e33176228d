import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.errors import conflict
from fleet_api.core.pagination import Page, PageParams, apply_search, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.models.user import User
from fleet_api.schemas.user import UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_unique(db: Session, email: Optional[str], cuit: Optional[int], exclude_id=None):
    filters = []
    if email is not None:
        filters.append(User.email == email)
    if cuit is not None:
        filters.append(User.cuit == cuit)
    if not filters:
        return
    query = db.query(User).filter(or_(*filters))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    existing = query.first()
    if existing:
        field = "email" if email is not None and existing.email == email else "CUIT"
        raise conflict(f"A user with this {field} already exists", "duplicate-user", "Duplicate User")


@router.get("", response_model=Page[UserResponse], dependencies=[Depends(require_user)])
def get_users(
    active: Optional[bool] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get users."""
    query = db.query(User)
    if active is not None:
        query = query.filter(User.active == active)
    query = apply_search(query, params.search, [User.first_name, User.last_name, User.email])
    items, total = paginate_query(query.order_by(User.last_name, User.first_name), params)
    return paginated(items, total, params)


@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_user)])
def get_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific user."""
    return get_or_404(db, User, user_id, "User")


@router.post("", response_model=UserResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create a new user."""
    _check_unique(db, user.email, user.cuit)
    db_user = User(**user.model_dump())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Created user {db_user.id} ({db_user.email})")
    return db_user


@router.patch("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_admin)])
def update_user(user_id: uuid.UUID, user: UserUpdate, db: Session = Depends(get_db)):
    """Update a user."""
    db_user = get_or_404(db, User, user_id, "User")
    update_data = user.model_dump(exclude_unset=True)
    _check_unique(db, update_data.get("email"), update_data.get("cuit"), exclude_id=user_id)

    for key, value in update_data.items():
        setattr(db_user, key, value)

    db.commit()
    db.refresh(db_user)
    return db_user


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Delete a user."""
    db_user = get_or_404(db, User, user_id, "User")
    db.delete(db_user)
    db.commit()
    logger.info(f"Deleted user {user_id}")
    return Response(status_code=204)
