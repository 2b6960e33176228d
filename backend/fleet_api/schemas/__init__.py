from fleet_api.schemas.user import (
    UserCreate, UserUpdate, UserResponse, MeResponse,
    UserRoleCreate, UserRoleUpdate, UserRoleEnd, UserRoleResponse,
)
from fleet_api.schemas.vehicle import (
    BrandCreate, BrandUpdate, BrandResponse,
    ModelCreate, ModelUpdate, ModelResponse,
    VehicleCreate, VehicleUpdate, VehicleResponse,
    KilometersCreate, KilometersResponse,
    ResponsibleCreate, ResponsibleUpdate, ResponsibleResponse,
)
from fleet_api.schemas.access import (
    AclCreate, AclUpdate, AclResponse,
    ReservationCreate, ReservationUpdate, ReservationResponse,
)
from fleet_api.schemas.maintenance import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    MaintenanceCreate, MaintenanceUpdate, MaintenanceResponse,
    RequirementCreate, RequirementUpdate, RequirementResponse,
    RecordCreate, RecordUpdate, RecordResponse,
)
from fleet_api.schemas.quarterly_control import (
    ItemCreate, ItemUpdate, ItemResponse,
    ControlCreate, ControlUpdate, ControlResponse, ControlDetailResponse,
    ControlWithItemsCreate, ControlFill, GenerateRequest, GenerateResponse,
)

__all__ = [
    "UserCreate", "UserUpdate", "UserResponse", "MeResponse",
    "UserRoleCreate", "UserRoleUpdate", "UserRoleEnd", "UserRoleResponse",
    "BrandCreate", "BrandUpdate", "BrandResponse",
    "ModelCreate", "ModelUpdate", "ModelResponse",
    "VehicleCreate", "VehicleUpdate", "VehicleResponse",
    "KilometersCreate", "KilometersResponse",
    "ResponsibleCreate", "ResponsibleUpdate", "ResponsibleResponse",
    "AclCreate", "AclUpdate", "AclResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "MaintenanceCreate", "MaintenanceUpdate", "MaintenanceResponse",
    "RequirementCreate", "RequirementUpdate", "RequirementResponse",
    "RecordCreate", "RecordUpdate", "RecordResponse",
    "ItemCreate", "ItemUpdate", "ItemResponse",
    "ControlCreate", "ControlUpdate", "ControlResponse", "ControlDetailResponse",
    "ControlWithItemsCreate", "ControlFill", "GenerateRequest", "GenerateResponse",
]
