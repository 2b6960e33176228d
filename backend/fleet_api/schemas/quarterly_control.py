import uuid
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from fleet_api.models.enums import ControlItemStatus
from fleet_api.schemas.vehicle import VehicleSummary


class ItemInput(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    title: str = Field(min_length=1, max_length=200)
    status: ControlItemStatus = ControlItemStatus.PENDING
    observations: str = ""


class ItemCreate(ItemInput):
    quarterly_control_id: uuid.UUID


class ItemUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[ControlItemStatus] = None
    observations: Optional[str] = None


class ItemResponse(BaseModel):
    id: uuid.UUID
    quarterly_control_id: uuid.UUID
    category: str
    title: str
    status: ControlItemStatus
    observations: str

    class Config:
        from_attributes = True


class ControlCreate(BaseModel):
    vehicle_id: uuid.UUID
    year: int = Field(ge=2000, le=2100)
    quarter: int = Field(ge=1, le=4)
    intended_delivery_date: date
    filled_by: Optional[uuid.UUID] = None
    filled_at: Optional[date] = None


class ControlUpdate(BaseModel):
    vehicle_id: Optional[uuid.UUID] = None
    year: Optional[int] = Field(None, ge=2000, le=2100)
    quarter: Optional[int] = Field(None, ge=1, le=4)
    intended_delivery_date: Optional[date] = None
    filled_by: Optional[uuid.UUID] = None
    filled_at: Optional[date] = None


class ControlResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    year: int
    quarter: int
    intended_delivery_date: date
    filled_by: Optional[uuid.UUID] = None
    filled_at: Optional[date] = None
    kilometers_log_id: Optional[uuid.UUID] = None
    vehicle: Optional[VehicleSummary] = None

    class Config:
        from_attributes = True


class ControlDetailResponse(ControlResponse):
    items: List[ItemResponse] = []


class ControlWithItemsCreate(BaseModel):
    vehicle_id: uuid.UUID
    year: int = Field(ge=2000, le=2100)
    quarter: int = Field(ge=1, le=4)
    intended_delivery_date: date
    items: Optional[List[ItemInput]] = None  # default checklist when omitted


class ItemFill(BaseModel):
    id: uuid.UUID
    status: ControlItemStatus
    observations: str = ""


class ControlFill(BaseModel):
    kilometers: int = Field(ge=0)
    items: List[ItemFill] = []


class GenerateRequest(BaseModel):
    year: Optional[int] = Field(None, ge=2000, le=2100)
    quarter: Optional[int] = Field(None, ge=1, le=4)


class GenerateResponse(BaseModel):
    year: int
    quarter: int
    intended_delivery_date: date
    created: int
    skipped: int
