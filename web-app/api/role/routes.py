from fastapi import APIRouter, Depends

from core.errors import raise_for_failure
from core.permissions import Permissions
from services.rbac_service import RBACService
from sso_auth.dependencies import get_rbac_service, require_permission
from api.user.schemas import OperationResponse
from api.role.schemas import (
    PermissionCreate,
    PermissionListResponse,
    PermissionResponse,
    RoleCreate,
    RoleListResponse,
    RoleResponse,
)

router = APIRouter()
permissions_router = APIRouter()

manage_users = require_permission(Permissions.USERS_MANAGE)


# ============================================================================
# Roles
# ============================================================================

@router.get("", response_model=RoleListResponse)
def list_roles(
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    rbac: RBACService = Depends(get_rbac_service),
):
    roles = rbac.list_roles()
    return RoleListResponse(roles=[RoleResponse.model_validate(r) for r in roles], total=len(roles))


@router.post("", response_model=RoleResponse, status_code=201)
def create_role(
    data: RoleCreate,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.create_role(data.name, data.description)
    if not result.success:
        raise_for_failure(result.error)
    return RoleResponse.model_validate(result.role)


@router.delete("/{role_id}", response_model=OperationResponse)
def delete_role(
    role_id: str,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.delete_role(role_id)
    if not result.success:
        raise_for_failure(result.error)
    return OperationResponse(success=True, message="Role deleted")


@router.get("/{role_id}/permissions", response_model=PermissionListResponse)
def get_role_permissions(
    role_id: str,
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    rbac: RBACService = Depends(get_rbac_service),
):
    permissions = rbac.get_role_permissions(role_id)
    return PermissionListResponse(
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
        total=len(permissions),
    )


@router.put("/{role_id}/permissions/{permission_id}", response_model=OperationResponse)
def grant_permission(
    role_id: str,
    permission_id: str,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.grant_permission_to_role(role_id, permission_id)
    if not result.success:
        raise_for_failure(result.error)
    return OperationResponse(success=True, message="Permission granted")


@router.delete("/{role_id}/permissions/{permission_id}", response_model=OperationResponse)
def revoke_permission(
    role_id: str,
    permission_id: str,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.revoke_permission_from_role(role_id, permission_id)
    if not result.success:
        raise_for_failure(result.error)
    return OperationResponse(success=True, message="Permission revoked")


# ============================================================================
# Permissions
# ============================================================================

@permissions_router.get("", response_model=PermissionListResponse)
def list_permissions(
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    rbac: RBACService = Depends(get_rbac_service),
):
    permissions = rbac.list_permissions()
    return PermissionListResponse(
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
        total=len(permissions),
    )


@permissions_router.post("", response_model=PermissionResponse, status_code=201)
def create_permission(
    data: PermissionCreate,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.create_permission(data.resource, data.action, data.description)
    if not result.success:
        raise_for_failure(result.error)
    return PermissionResponse.model_validate(result.permission)
