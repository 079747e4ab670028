from database.models.user import User
from database.models.role import Role, RoleName, UserRole
from database.models.permission import Permission, RolePermission

__all__ = [
    "User",
    "Role",
    "RoleName",
    "UserRole",
    "Permission",
    "RolePermission",
]
