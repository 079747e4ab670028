from typing import Iterable, Sequence

from fastapi import Depends, Request, Response
from sqlmodel import Session

from config.settings import IS_PRODUCTION
from core.errors import APIError
from core.permissions import Permissions, split_permission
from database.connection import get_session
from services.rbac_service import RBACService
from sso_auth.client import OAuth2Client
from sso_auth.session import SessionCookieStore, SessionManager
from utils.logger import get_logger

logger = get_logger(__name__)


def get_oauth_client(request: Request) -> OAuth2Client:
    return request.app.state.oauth_client


def get_session_manager(
    request: Request,
    oauth_client: OAuth2Client = Depends(get_oauth_client),
) -> SessionManager:
    """One SessionManager per request, shared by every dependency that asks."""
    manager = getattr(request.state, "session_manager", None)
    if manager is None:
        store = SessionCookieStore(request.cookies, secure=IS_PRODUCTION)
        manager = SessionManager(store, oauth_client)
        request.state.session_manager = manager
    return manager


def get_rbac_service(session: Session = Depends(get_session)) -> RBACService:
    return RBACService(session)


async def require_auth(
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
) -> str:
    """Authenticated local user id, refreshing the access token if it is about to expire."""
    if manager.get_current_session() is None:
        raise APIError.unauthorized()

    user_id = await manager.validate_session_and_get_user_id()
    if user_id is None:
        raise APIError.token_expired()

    # Carry a refreshed session cookie on the handler's response
    manager.store.apply(response)
    return user_id


def _normalize(permissions: Iterable["Permissions | str"]) -> list[tuple[str, str]]:
    return [split_permission(p) for p in permissions]


class PermissionChecker:
    """Dependency class for checking user permissions.

    mode "all" requires every listed permission, mode "any" requires one.
    """

    def __init__(self, required: Sequence["Permissions | str"], mode: str = "all"):
        if mode not in ("all", "any"):
            raise ValueError(f"Unknown permission mode: {mode}")
        self.required = _normalize(required)
        self.mode = mode

    def __call__(
        self,
        user_id: str = Depends(require_auth),
        rbac: RBACService = Depends(get_rbac_service),
    ) -> str:
        last_reason = None
        for resource, action in self.required:
            check = rbac.check_permission(user_id, resource, action)

            if check.error:
                raise APIError.permission_check_error()

            if check.allowed and self.mode == "any":
                return user_id
            if not check.allowed:
                last_reason = check.reason
                if self.mode == "all":
                    logger.info(f"Denied {resource}:{action} to user {user_id}")
                    raise APIError.insufficient_permissions(check.reason)

        if self.mode == "any":
            logger.info(f"Denied user {user_id}: none of {self.required}")
            raise APIError.insufficient_permissions(
                "You do not have any of the required permissions to access this resource"
                if len(self.required) > 1 else last_reason
            )

        return user_id


def require_permission(permission: "Permissions | str"):
    """Factory function to create permission dependency."""
    return PermissionChecker([permission])


def require_any_permission(*permissions: "Permissions | str"):
    return PermissionChecker(permissions, mode="any")


def require_all_permissions(*permissions: "Permissions | str"):
    return PermissionChecker(permissions, mode="all")
