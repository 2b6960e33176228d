import enum


class UserRoleType(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


# Higher number = more privileges
ROLE_WEIGHT = {
    UserRoleType.USER: 1,
    UserRoleType.ADMIN: 2,
}


class PermissionType(str, enum.Enum):
    READ = "Read"
    MAINTAINER = "Maintainer"
    DRIVER = "Driver"
    FULL = "Full"


# Hierarchy: READ < MAINTAINER < DRIVER < FULL
PERMISSION_WEIGHT = {
    PermissionType.READ: 1,
    PermissionType.MAINTAINER: 2,
    PermissionType.DRIVER: 3,
    PermissionType.FULL: 4,
}


def allowed_permissions(required: PermissionType) -> list:
    """Every permission that satisfies ``required``."""
    weight = PERMISSION_WEIGHT[required]
    return [p for p, w in PERMISSION_WEIGHT.items() if w >= weight]


class ControlItemStatus(str, enum.Enum):
    PENDING = "PENDIENTE"
    APPROVED = "APROBADO"
    REJECTED = "RECHAZADO"
