from fleet_api.models.user import User, UserRole
from fleet_api.models.vehicle import (
    VehicleBrand, VehicleModel, Vehicle, VehicleResponsible, VehicleKilometers,
)
from fleet_api.models.access import VehicleAcl, Reservation
from fleet_api.models.maintenance import (
    MaintenanceCategory, Maintenance, MaintenanceRequirement, MaintenanceRecord,
)
from fleet_api.models.quarterly_control import QuarterlyControl, QuarterlyControlItem

__all__ = [
    "User", "UserRole",
    "VehicleBrand", "VehicleModel", "Vehicle", "VehicleResponsible", "VehicleKilometers",
    "VehicleAcl", "Reservation",
    "MaintenanceCategory", "Maintenance", "MaintenanceRequirement", "MaintenanceRecord",
    "QuarterlyControl", "QuarterlyControlItem",
]
