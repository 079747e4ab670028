from sso_auth.client import OAuth2Client, AuthorizationResult, CallbackResult
from sso_auth.dependencies import (
    get_oauth_client,
    get_session_manager,
    get_rbac_service,
    require_auth,
    require_permission,
    require_any_permission,
    require_all_permissions,
)
from sso_auth.service import (
    SyncResult,
    UserSyncError,
    find_local_user,
    create_local_user,
    sync_user_from_sso,
    provision_user_from_sso,
)
from sso_auth.session import SessionCookieStore, SessionManager

__all__ = [
    "OAuth2Client",
    "AuthorizationResult",
    "CallbackResult",
    "get_oauth_client",
    "get_session_manager",
    "get_rbac_service",
    "require_auth",
    "require_permission",
    "require_any_permission",
    "require_all_permissions",
    "SyncResult",
    "UserSyncError",
    "find_local_user",
    "create_local_user",
    "sync_user_from_sso",
    "provision_user_from_sso",
    "SessionCookieStore",
    "SessionManager",
]
