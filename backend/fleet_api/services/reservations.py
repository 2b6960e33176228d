"""Vehicle reservations."""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from fleet_api.core.database import get_or_404
from fleet_api.core.errors import bad_request, conflict
from fleet_api.core.permissions import check_vehicle_permission, is_admin
from fleet_api.core.security import AuthenticatedUser, forbidden
from fleet_api.models.access import Reservation
from fleet_api.models.enums import PermissionType
from fleet_api.models.user import User
from fleet_api.schemas.access import ReservationCreate, ReservationUpdate

logger = logging.getLogger(__name__)


def check_range(start_date: datetime, end_date: datetime) -> None:
    if end_date <= start_date:
        raise bad_request("end_date must be after start_date", "invalid-date-range", "Invalid Date Range")


def find_overlapping(
    db: Session, vehicle_id: uuid.UUID, start_date: datetime, end_date: datetime, exclude_id=None
) -> Optional[Reservation]:
    query = db.query(Reservation).filter(
        Reservation.vehicle_id == vehicle_id,
        Reservation.start_date < end_date,
        Reservation.end_date > start_date,
    )
    if exclude_id is not None:
        query = query.filter(Reservation.id != exclude_id)
    return query.first()


def _overlap_error(overlap: Reservation):
    return conflict(
        f"Vehicle is already reserved from {overlap.start_date.isoformat()} to {overlap.end_date.isoformat()}",
        "reservation-overlap",
        "Reservation Overlap",
    )


def create_reservation(db: Session, data: ReservationCreate, user: AuthenticatedUser) -> Reservation:
    """Reserve a vehicle; only admins may reserve on behalf of another user."""
    check_range(data.start_date, data.end_date)
    check_vehicle_permission(db, user, data.vehicle_id, PermissionType.DRIVER)

    user_id = data.user_id or user.id
    if user_id != user.id:
        if not is_admin(db, user.id):
            raise forbidden("Only admins can create reservations for other users")
        get_or_404(db, User, user_id, "User")

    overlap = find_overlapping(db, data.vehicle_id, data.start_date, data.end_date)
    if overlap:
        raise _overlap_error(overlap)

    reservation = Reservation(
        user_id=user_id, vehicle_id=data.vehicle_id, start_date=data.start_date, end_date=data.end_date
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    logger.info(f"Vehicle {data.vehicle_id} reserved for {user_id} ({data.start_date} - {data.end_date})")
    return reservation


def update_reservation(db: Session, reservation: Reservation, data: ReservationUpdate) -> Reservation:
    update_data = data.model_dump(exclude_unset=True)
    start_date = update_data.get("start_date", reservation.start_date)
    end_date = update_data.get("end_date", reservation.end_date)
    check_range(start_date, end_date)

    overlap = find_overlapping(db, reservation.vehicle_id, start_date, end_date, exclude_id=reservation.id)
    if overlap:
        raise _overlap_error(overlap)

    for key, value in update_data.items():
        setattr(reservation, key, value)
    db.commit()
    db.refresh(reservation)
    return reservation
