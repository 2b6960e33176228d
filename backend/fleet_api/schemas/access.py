import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from fleet_api.models.enums import PermissionType


class AclCreate(BaseModel):
    user_id: uuid.UUID
    vehicle_id: uuid.UUID
    permission: PermissionType = PermissionType.READ
    start_time: datetime
    end_time: Optional[datetime] = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AclUpdate(BaseModel):
    permission: Optional[PermissionType] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class AclResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    vehicle_id: uuid.UUID
    permission: PermissionType
    start_time: datetime
    end_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReservationCreate(BaseModel):
    vehicle_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None  # defaults to the caller
    start_date: datetime
    end_date: datetime


class ReservationUpdate(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class ReservationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    vehicle_id: uuid.UUID
    start_date: datetime
    end_date: datetime

    class Config:
        from_attributes = True
