import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from fleet_api.models.enums import UserRoleType

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    cuit: int = Field(ge=10_000_000_000, le=99_999_999_999)  # 11 digits
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)


class UserCreate(UserBase):
    active: bool = True
    entra_id: str = Field("", max_length=64)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    cuit: Optional[int] = Field(None, ge=10_000_000_000, le=99_999_999_999)
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    active: Optional[bool] = None
    entra_id: Optional[str] = Field(None, max_length=64)


class UserResponse(UserBase):
    id: uuid.UUID
    active: bool
    entra_id: str

    class Config:
        from_attributes = True


class MeResponse(UserResponse):
    roles: List[str] = []
    is_admin: bool = False


class UserRoleCreate(BaseModel):
    user_id: uuid.UUID
    role: UserRoleType = UserRoleType.USER
    start_time: datetime
    end_time: Optional[datetime] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class UserRoleUpdate(BaseModel):
    role: Optional[UserRoleType] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class UserRoleEnd(BaseModel):
    end_time: Optional[datetime] = None


class UserRoleResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: UserRoleType
    start_time: datetime
    end_time: Optional[datetime] = None

    class Config:
        from_attributes = True
