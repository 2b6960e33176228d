import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class RiskIndicator(BaseModel):
    key: str
    label: str
    count: int
    severity: str  # high, medium, low


class VehicleWithoutResponsible(BaseModel):
    vehicle_id: uuid.UUID
    license_plate: str
    model_name: Optional[str] = None
    brand_name: Optional[str] = None
    last_responsible_end_date: Optional[date] = None


class OverdueMaintenanceRow(BaseModel):
    vehicle_id: uuid.UUID
    license_plate: str
    model_name: Optional[str] = None
    brand_name: Optional[str] = None
    requirement_id: uuid.UUID
    maintenance_id: uuid.UUID
    maintenance_name: str
    kilometers_frequency: Optional[int] = None
    days_frequency: Optional[int] = None
    last_maintenance_date: Optional[date] = None
    last_maintenance_kilometers: Optional[int] = None
    current_kilometers: int
    due_date: Optional[date] = None
    due_kilometers: Optional[int] = None
    days_overdue: Optional[int] = None
    kilometers_overdue: Optional[int] = None
    overdue_by_days: bool
    overdue_by_kilometers: bool


class OverdueVehicle(BaseModel):
    vehicle_id: uuid.UUID
    license_plate: str
    current_kilometers: int
    last_maintenance_date: Optional[date] = None
    last_maintenance_kilometers: Optional[int] = None
    due_date: Optional[date] = None
    due_kilometers: Optional[int] = None
    days_overdue: Optional[int] = None
    kilometers_overdue: Optional[int] = None


class OverdueRequirementGroup(BaseModel):
    requirement_id: uuid.UUID
    maintenance_id: uuid.UUID
    maintenance_name: str
    model_id: uuid.UUID
    model_name: str
    brand_name: Optional[str] = None
    kilometers_frequency: Optional[int] = None
    days_frequency: Optional[int] = None
    affected_vehicles_count: int
    vehicles: List[OverdueVehicle]


class OverdueQuarterlyControl(BaseModel):
    control_id: uuid.UUID
    vehicle_id: uuid.UUID
    license_plate: str
    year: int
    quarter: int
    intended_delivery_date: date
    days_overdue: int
    filled: bool
    pending_items: int
    total_items: int


class QuarterlyControlWithErrors(BaseModel):
    control_id: uuid.UUID
    vehicle_id: uuid.UUID
    license_plate: str
    year: int
    quarter: int
    filled_at: Optional[date] = None
    rejected_items: int
    total_items: int
    rejected_titles: List[str]


class VehicleWithoutRecentKilometers(BaseModel):
    vehicle_id: uuid.UUID
    license_plate: str
    model_name: Optional[str] = None
    brand_name: Optional[str] = None
    last_kilometers: Optional[int] = None
    last_update: Optional[datetime] = None
    days_since_last_update: int  # -1 when the vehicle has no reading


class MaintenanceStatusRow(OverdueMaintenanceRow):
    overdue: bool
