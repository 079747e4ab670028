from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.errors import APIError, raise_for_failure
from core.permissions import Permissions
from database.connection import get_session
from services.rbac_service import RBACService
from sso_auth.dependencies import get_rbac_service, require_permission
from sso_auth.schemas import SSOUser
from sso_auth.service import UserSyncError, provision_user_from_sso
from api.auth.schemas import PermissionSummary, RoleSummary
from api.user import crud
from api.user.schemas import (
    OperationResponse,
    Pagination,
    UserListResponse,
    UserProvisionRequest,
    UserResponse,
    UserRoleAssign,
    UserSyncRequest,
    UserSyncResponse,
)
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

manage_users = require_permission(Permissions.USERS_MANAGE)


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    session: Session = Depends(get_session),
):
    """List local users, newest first."""
    users = crud.list_users(session, page, limit, search)
    total = crud.count_users(session, search)

    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination(page=page, limit=limit, total=total, totalPages=crud.total_pages(total, limit)),
    )


@router.post("", response_model=UserResponse)
def provision_user(
    data: UserProvisionRequest,
    current_user_id: str = Depends(manage_users),
    session: Session = Depends(get_session),
):
    """Grant an SSO account access by creating (or finding) its local user."""
    try:
        user = provision_user_from_sso(session, SSOUser(email=data.email, username=data.username))
    except UserSyncError as e:
        logger.error(f"Provisioning {data.username} failed: {e}")
        raise APIError.conflict("User could not be provisioned; email or username may belong to another account")

    logger.info(f"User {user.id} provisioned by {current_user_id}")
    return UserResponse.model_validate(user)


@router.post("/sync", response_model=UserSyncResponse)
def sync_users(
    data: UserSyncRequest,
    current_user_id: str = Depends(manage_users),
    session: Session = Depends(get_session),
):
    """Bulk provisioning from the SSO directory. Existing users are left unchanged."""
    user_ids = set()
    for item in data.users:
        try:
            user = provision_user_from_sso(session, SSOUser(email=item.email, username=item.username))
        except UserSyncError as e:
            logger.error(f"Bulk sync stopped at {item.username}: {e}")
            raise APIError.conflict(f"User {item.username} could not be provisioned")
        user_ids.add(user.id)

    logger.info(f"Synced {len(user_ids)} users for {current_user_id}")
    return UserSyncResponse(
        success=True,
        count=len(user_ids),
        message=f"Successfully synced {len(user_ids)} users",
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    session: Session = Depends(get_session),
):
    """Get user details."""
    user = crud.get_user(session, user_id)
    if not user:
        raise APIError.not_found("User")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=OperationResponse)
def delete_user(
    user_id: str,
    current_user_id: str = Depends(manage_users),
    session: Session = Depends(get_session),
):
    """Delete a user."""
    user = crud.get_user(session, user_id)
    if not user:
        raise APIError.not_found("User")

    if user.id == current_user_id:
        raise APIError.validation_error("Cannot delete your own account")

    crud.delete_user(session, user)
    logger.info(f"User {user_id} deleted by {current_user_id}")
    return OperationResponse(success=True, message="User deleted successfully")


# ============================================================================
# Role assignments
# ============================================================================

@router.get("/{user_id}/roles", response_model=list[RoleSummary])
def get_user_roles(
    user_id: str,
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    rbac: RBACService = Depends(get_rbac_service),
):
    return [RoleSummary.model_validate(r) for r in rbac.get_user_roles(user_id)]


@router.get("/{user_id}/permissions", response_model=list[PermissionSummary])
def get_user_permissions(
    user_id: str,
    current_user_id: str = Depends(require_permission(Permissions.USERS_READ)),
    rbac: RBACService = Depends(get_rbac_service),
):
    return [PermissionSummary.model_validate(p) for p in rbac.get_user_permissions(user_id)]


@router.post("/{user_id}/roles", response_model=OperationResponse)
def assign_role(
    user_id: str,
    data: UserRoleAssign,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.assign_role(user_id, data.role_id, assigned_by=current_user_id)
    if not result.success:
        raise_for_failure(result.error)
    return OperationResponse(success=True, message="Role assigned")


@router.delete("/{user_id}/roles/{role_id}", response_model=OperationResponse)
def remove_role(
    user_id: str,
    role_id: str,
    current_user_id: str = Depends(manage_users),
    rbac: RBACService = Depends(get_rbac_service),
):
    result = rbac.remove_role(user_id, role_id)
    if not result.success:
        raise_for_failure(result.error)
    return OperationResponse(success=True, message="Role removed")
