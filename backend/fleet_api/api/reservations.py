import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.pagination import Page, PageParams, page_params, paginate_query, paginated
from fleet_api.core.permissions import require_admin, require_user
from fleet_api.core.security import AuthenticatedUser
from fleet_api.models.access import Reservation
from fleet_api.schemas.access import ReservationCreate, ReservationResponse, ReservationUpdate
from fleet_api.services import reservations

router = APIRouter()


@router.get("", response_model=Page[ReservationResponse], dependencies=[Depends(require_user)])
def get_reservations(
    user_id: Optional[uuid.UUID] = None,
    vehicle_id: Optional[uuid.UUID] = None,
    from_: Optional[datetime] = Query(None, alias="from"),
    to: Optional[datetime] = None,
    params: PageParams = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Get reservations, optionally only those intersecting [from, to]."""
    query = db.query(Reservation)
    if user_id:
        query = query.filter(Reservation.user_id == user_id)
    if vehicle_id:
        query = query.filter(Reservation.vehicle_id == vehicle_id)
    if from_:
        query = query.filter(Reservation.end_date > from_)
    if to:
        query = query.filter(Reservation.start_date < to)
    items, total = paginate_query(query.order_by(Reservation.start_date), params)
    return paginated(items, total, params)


@router.get("/{reservation_id}", response_model=ReservationResponse, dependencies=[Depends(require_user)])
def get_reservation(reservation_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific reservation."""
    return get_or_404(db, Reservation, reservation_id, "Reservation")


@router.post("", response_model=ReservationResponse, status_code=201)
def create_reservation(
    reservation: ReservationCreate,
    user: AuthenticatedUser = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Reserve a vehicle (Driver permission on it required)."""
    return reservations.create_reservation(db, reservation, user)


@router.patch("/{reservation_id}", response_model=ReservationResponse, dependencies=[Depends(require_admin)])
def update_reservation(reservation_id: uuid.UUID, reservation: ReservationUpdate, db: Session = Depends(get_db)):
    """Move a reservation."""
    db_reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    return reservations.update_reservation(db, db_reservation, reservation)


@router.delete("/{reservation_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_reservation(reservation_id: uuid.UUID, db: Session = Depends(get_db)):
    """Cancel a reservation."""
    db_reservation = get_or_404(db, Reservation, reservation_id, "Reservation")
    db.delete(db_reservation)
    db.commit()
    return Response(status_code=204)
