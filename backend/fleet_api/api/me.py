from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fleet_api.core.database import get_db, get_or_404
from fleet_api.core.permissions import active_roles
from fleet_api.core.security import AuthenticatedUser, get_current_user
from fleet_api.models.enums import UserRoleType
from fleet_api.models.user import User
from fleet_api.schemas.user import MeResponse, UserResponse

router = APIRouter()


@router.get("", response_model=MeResponse)
def get_me(user: AuthenticatedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get the authenticated user with their active roles."""
    profile = get_or_404(db, User, user.id, "User")
    roles = active_roles(db, user.id)
    return MeResponse(
        **UserResponse.model_validate(profile).model_dump(),
        roles=roles,
        is_admin=UserRoleType.ADMIN.value in roles,
    )
