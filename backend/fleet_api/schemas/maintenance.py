import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from fleet_api.schemas.vehicle import ModelResponse, VehicleSummary


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class MaintenanceBase(BaseModel):
    category_id: uuid.UUID
    name: str = Field(min_length=1, max_length=200)
    kilometers_frequency: Optional[int] = Field(None, gt=0)
    days_frequency: Optional[int] = Field(None, gt=0)
    observations: Optional[str] = None
    instructions: Optional[str] = None


class MaintenanceCreate(MaintenanceBase):
    pass


class MaintenanceUpdate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    kilometers_frequency: Optional[int] = Field(None, gt=0)
    days_frequency: Optional[int] = Field(None, gt=0)
    observations: Optional[str] = None
    instructions: Optional[str] = None


class MaintenanceResponse(MaintenanceBase):
    id: uuid.UUID
    category: Optional[CategoryResponse] = None

    class Config:
        from_attributes = True


class RequirementCreate(BaseModel):
    model_id: uuid.UUID
    maintenance_id: uuid.UUID
    kilometers_frequency: Optional[int] = Field(None, gt=0)
    days_frequency: Optional[int] = Field(None, gt=0)
    observations: Optional[str] = None
    instructions: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None


class RequirementUpdate(BaseModel):
    model_id: Optional[uuid.UUID] = None
    maintenance_id: Optional[uuid.UUID] = None
    kilometers_frequency: Optional[int] = Field(None, gt=0)
    days_frequency: Optional[int] = Field(None, gt=0)
    observations: Optional[str] = None
    instructions: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MaintenanceSummary(BaseModel):
    id: uuid.UUID
    name: str
    category: Optional[CategoryResponse] = None

    class Config:
        from_attributes = True


class RequirementResponse(BaseModel):
    id: uuid.UUID
    model_id: uuid.UUID
    maintenance_id: uuid.UUID
    kilometers_frequency: Optional[int] = None
    days_frequency: Optional[int] = None
    observations: Optional[str] = None
    instructions: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    model: Optional[ModelResponse] = None
    maintenance: Optional[MaintenanceSummary] = None

    class Config:
        from_attributes = True


class RecordCreate(BaseModel):
    vehicle_id: uuid.UUID
    maintenance_id: uuid.UUID
    date: datetime
    kilometers: int = Field(ge=0)
    notes: Optional[str] = None


class RecordUpdate(BaseModel):
    maintenance_id: Optional[uuid.UUID] = None
    date: Optional[datetime] = None
    kilometers: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class RecordResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    maintenance_id: uuid.UUID
    user_id: uuid.UUID
    kilometers_log_id: Optional[uuid.UUID] = None
    date: datetime
    kilometers: int
    notes: Optional[str] = None
    vehicle: Optional[VehicleSummary] = None
    maintenance: Optional[MaintenanceSummary] = None

    class Config:
        from_attributes = True
