from services.rbac_service import RBACService, RBACResult, PermissionCheck

__all__ = [
    "RBACService",
    "RBACResult",
    "PermissionCheck",
]
