import re
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Mercosur (AA123BB) or legacy (ABC123) plates
LICENSE_PLATE_RE = re.compile(r"^[A-Z]{2}[0-9]{3}[A-Z]{2}$|^[A-Z]{3}[0-9]{3}$")


def normalize_plate(value: str) -> str:
    plate = value.strip().upper()
    if not LICENSE_PLATE_RE.match(plate):
        raise ValueError("license_plate must look like AA123BB or ABC123")
    return plate


class BrandCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class BrandResponse(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class ModelCreate(BaseModel):
    brand_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    vehicle_type: Optional[str] = Field(None, max_length=50)


class ModelUpdate(BaseModel):
    brand_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    vehicle_type: Optional[str] = Field(None, max_length=50)


class ModelResponse(BaseModel):
    id: uuid.UUID
    name: str
    vehicle_type: Optional[str] = None
    brand: Optional[BrandResponse] = None

    class Config:
        from_attributes = True


class VehicleBase(BaseModel):
    license_plate: str
    model_id: Optional[uuid.UUID] = None
    year: int = Field(ge=1900, le=2100)
    chassis_number: Optional[str] = Field(None, max_length=50)
    engine_number: Optional[str] = Field(None, max_length=50)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    transmission: Optional[str] = Field(None, max_length=50)
    fuel_type: Optional[str] = Field(None, max_length=50)
    registration_date: Optional[date] = None


class VehicleCreate(VehicleBase):
    @field_validator("license_plate")
    @classmethod
    def check_plate(cls, v: str) -> str:
        return normalize_plate(v)


class VehicleUpdate(BaseModel):
    license_plate: Optional[str] = None
    model_id: Optional[uuid.UUID] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    chassis_number: Optional[str] = Field(None, max_length=50)
    engine_number: Optional[str] = Field(None, max_length=50)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    transmission: Optional[str] = Field(None, max_length=50)
    fuel_type: Optional[str] = Field(None, max_length=50)
    registration_date: Optional[date] = None

    @field_validator("license_plate")
    @classmethod
    def check_plate(cls, v: Optional[str]) -> Optional[str]:
        return normalize_plate(v) if v is not None else v


class VehicleResponse(VehicleBase):
    id: uuid.UUID
    model: Optional[ModelResponse] = None

    class Config:
        from_attributes = True


class VehicleSummary(BaseModel):
    id: uuid.UUID
    license_plate: str

    class Config:
        from_attributes = True


class KilometersCreate(BaseModel):
    date: datetime
    kilometers: int = Field(ge=0)


class KilometersResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    user_id: uuid.UUID
    date: datetime
    kilometers: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResponsibleCreate(BaseModel):
    vehicle_id: uuid.UUID
    user_id: uuid.UUID
    ceco: str = Field("99999999", pattern=r"^\d{8}$")
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_date_range(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class ResponsibleUpdate(BaseModel):
    user_id: Optional[uuid.UUID] = None
    ceco: Optional[str] = Field(None, pattern=r"^\d{8}$")
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ResponsibleResponse(BaseModel):
    id: uuid.UUID
    vehicle_id: uuid.UUID
    user_id: uuid.UUID
    ceco: str
    start_date: date
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    vehicle: Optional[VehicleSummary] = None

    class Config:
        from_attributes = True
