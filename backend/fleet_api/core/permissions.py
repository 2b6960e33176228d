"""Role and per-vehicle permission checks."""
import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db
from fleet_api.core.errors import not_found
from fleet_api.core.security import AuthenticatedUser, get_current_user, forbidden
from fleet_api.models.access import VehicleAcl
from fleet_api.models.enums import (
    UserRoleType, PermissionType, ROLE_WEIGHT, PERMISSION_WEIGHT, allowed_permissions,
)
from fleet_api.models.user import UserRole
from fleet_api.models.vehicle import Vehicle, VehicleResponsible


def active_roles(db: Session, user_id: uuid.UUID, now: Optional[datetime] = None) -> List[str]:
    now = now or datetime.now()
    rows = (
        db.query(UserRole.role)
        .filter(
            UserRole.user_id == user_id,
            UserRole.start_time <= now,
            or_(UserRole.end_time.is_(None), UserRole.end_time > now),
        )
        .all()
    )
    return sorted({row.role for row in rows})


def has_role(db: Session, user_id: uuid.UUID, role: UserRoleType, now: Optional[datetime] = None) -> bool:
    """True when any active role assignment weighs at least as much as ``role``."""
    required = ROLE_WEIGHT[role]
    for name in active_roles(db, user_id, now):
        try:
            if ROLE_WEIGHT[UserRoleType(name)] >= required:
                return True
        except ValueError:
            continue
    return False


def is_admin(db: Session, user_id: uuid.UUID) -> bool:
    return has_role(db, user_id, UserRoleType.ADMIN)


def is_current_responsible(db: Session, user_id: uuid.UUID, vehicle_id: uuid.UUID, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return (
        db.query(VehicleResponsible.id)
        .filter(
            VehicleResponsible.vehicle_id == vehicle_id,
            VehicleResponsible.user_id == user_id,
            VehicleResponsible.start_date <= today,
            or_(VehicleResponsible.end_date.is_(None), VehicleResponsible.end_date >= today),
        )
        .first()
        is not None
    )


def has_vehicle_permission(
    db: Session,
    user_id: uuid.UUID,
    vehicle_id: uuid.UUID,
    permission: PermissionType,
    now: Optional[datetime] = None,
) -> bool:
    now = now or datetime.now()
    if has_role(db, user_id, UserRoleType.ADMIN, now):
        return True

    # The current responsible holds Full on the vehicle
    if is_current_responsible(db, user_id, vehicle_id, now.date()):
        return True

    granted = [p.value for p in allowed_permissions(permission)]
    acl = (
        db.query(VehicleAcl.id)
        .filter(
            VehicleAcl.user_id == user_id,
            VehicleAcl.vehicle_id == vehicle_id,
            VehicleAcl.permission.in_(granted),
            VehicleAcl.start_time <= now,
            or_(VehicleAcl.end_time.is_(None), VehicleAcl.end_time > now),
        )
        .first()
    )
    return acl is not None


def check_vehicle_permission(
    db: Session, user: AuthenticatedUser, vehicle_id: uuid.UUID, permission: PermissionType
) -> None:
    """Raise 404 for an unknown vehicle and 403 when ``user`` lacks ``permission`` on it."""
    if not db.query(Vehicle.id).filter(Vehicle.id == vehicle_id).first():
        raise not_found("Vehicle", vehicle_id)
    if not has_vehicle_permission(db, user.id, vehicle_id, permission):
        raise forbidden(f"{permission.value} permission on vehicle {vehicle_id} required")


def require_role(role: UserRoleType):
    """Dependency factory: the caller must hold ``role`` (or a heavier one)."""

    def dependency(
        user: AuthenticatedUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> AuthenticatedUser:
        if not has_role(db, user.id, role):
            raise forbidden(f"Role '{role.value}' required")
        return user

    return dependency


def require_vehicle_permission(permission: PermissionType):
    """Dependency factory reading ``vehicle_id`` from the path."""

    def dependency(
        vehicle_id: uuid.UUID,
        user: AuthenticatedUser = Depends(require_user),
        db: Session = Depends(get_db),
    ) -> AuthenticatedUser:
        check_vehicle_permission(db, user, vehicle_id, permission)
        return user

    return dependency


require_user = require_role(UserRoleType.USER)
require_admin = require_role(UserRoleType.ADMIN)


__all__ = [
    "PermissionType", "PERMISSION_WEIGHT", "UserRoleType",
    "active_roles", "has_role", "is_admin", "has_vehicle_permission",
    "check_vehicle_permission", "require_role", "require_vehicle_permission",
    "require_user", "require_admin",
]
