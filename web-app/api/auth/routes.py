from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session

from core.errors import APIError
from database.connection import get_session
from database.models import User
from services.rbac_service import RBACService
from sso_auth.dependencies import get_session_manager, require_auth
from sso_auth.pkce import calculate_expires_at
from sso_auth.schemas import SessionData, SessionUser
from sso_auth.service import sync_user_from_sso
from sso_auth.session import SessionManager
from api.auth.schemas import (
    ExtendSessionResponse,
    LogoutResponse,
    MeResponse,
    PermissionSummary,
    RefreshResponse,
    RoleSummary,
)
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

AUTH_ERROR_PATH = "/auth/error"


def safe_return_path(target: Optional[str]) -> str:
    """Only same-site absolute paths are followed after login or logout."""
    if not target or not target.startswith("/") or target.startswith("//") or "\\" in target:
        return "/"
    return target


def _redirect(manager: SessionManager, url: str) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    manager.store.apply(response)
    return response


def _error_redirect(manager: SessionManager, error: str, description: Optional[str] = None) -> RedirectResponse:
    params = {"error": error}
    if description:
        params["description"] = description
    return _redirect(manager, f"{AUTH_ERROR_PATH}?{urlencode(params)}")


@router.get("/login")
async def login(
    return_to: str = Query("/", alias="returnTo"),
    manager: SessionManager = Depends(get_session_manager),
):
    """Redirect to the SSO authorize endpoint with a fresh PKCE challenge."""
    try:
        auth = manager.oauth_client.initiate_auth()
    except ValueError as e:
        logger.error(f"Login initiation error: {e}")
        return _error_redirect(manager, "login_failed", "Failed to initiate login")

    manager.store_oauth_flow(auth.state, auth.code_verifier, safe_return_path(return_to))
    return _redirect(manager, auth.authorization_url)


@router.get("/callback")
async def auth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    manager: SessionManager = Depends(get_session_manager),
    session: Session = Depends(get_session),
):
    """Handle the OAuth callback from SSO and open a local session."""
    if not code or not state:
        manager.clear_oauth_flow()
        return _error_redirect(manager, "missing_parameters", "Authorization code or state is missing")

    flow = manager.get_oauth_flow()
    if flow is None:
        manager.clear_oauth_flow()
        return _error_redirect(manager, "invalid_state", "Login request expired. Please try again.")

    result = await manager.oauth_client.handle_callback(
        code=code,
        state=state,
        code_verifier=flow.code_verifier,
        expected_state=flow.state,
    )
    manager.clear_oauth_flow()

    if not result.success:
        return _error_redirect(manager, result.error or "callback_failed", result.error_description)

    tokens = result.tokens
    if not tokens.refresh_token:
        logger.error("SSO token response did not include a refresh token")
        return _error_redirect(manager, "token_exchange_failed", "SSO did not issue a refresh token")

    sync = sync_user_from_sso(session, result.user_info)
    if not sync.success:
        return _error_redirect(manager, sync.error or "user_not_found", sync.error_description)

    user = sync.user
    manager.create_session(
        SessionData(
            user=SessionUser(
                id=user.id,
                email=user.email,
                username=user.username,
                created_at=user.created_at,
                updated_at=user.updated_at,
            ),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=calculate_expires_at(tokens.expires_in),
        )
    )
    logger.info(f"User {user.id} logged in")

    return _redirect(manager, safe_return_path(flow.return_to))


@router.get("/logout")
async def logout_redirect(
    redirect: Optional[str] = None,
    manager: SessionManager = Depends(get_session_manager),
):
    """Logout, then send the browser on."""
    await manager.terminate_session()
    return _redirect(manager, safe_return_path(redirect))


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
):
    """Logout and clear session cookie."""
    await manager.terminate_session()
    manager.store.apply(response)
    return LogoutResponse(success=True, message="Logged out successfully")


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
):
    """Refresh the access token now, regardless of its remaining lifetime."""
    if manager.get_current_session() is None:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "no_session", "No active session found")

    expires_in = await manager.refresh_session()
    if expires_in is None:
        raise APIError(status.HTTP_401_UNAUTHORIZED, "refresh_failed", "Failed to refresh access token")

    manager.store.apply(response)
    return RefreshResponse(success=True, expires_in=expires_in)


@router.post("/extend-session", response_model=ExtendSessionResponse)
async def extend_session(
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
):
    """Slide the session expiry forward, up to the maximum session duration."""
    result = await manager.extend_session()

    if not result.success:
        status_code = (
            status.HTTP_403_FORBIDDEN if result.max_session_reached else status.HTTP_401_UNAUTHORIZED
        )
        body = ExtendSessionResponse(
            success=False,
            maxSessionReached=result.max_session_reached,
            error=result.error,
        )
        return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)

    manager.store.apply(response)
    return ExtendSessionResponse(
        success=True,
        expiresAt=result.expires_at,
        maxSessionReached=False,
        maxApproaching=result.max_approaching,
        remainingSessionTime=result.remaining_session_time,
    )


@router.get("/me", response_model=MeResponse)
async def get_me(
    user_id: str = Depends(require_auth),
    manager: SessionManager = Depends(get_session_manager),
    session: Session = Depends(get_session),
):
    """Get current authenticated user with roles and permissions."""
    user = session.get(User, user_id)
    if user is None:
        raise APIError.user_not_found()

    rbac = RBACService(session)
    return MeResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        created_at=user.created_at,
        expires_at=manager.get_current_session().expires_at,
        roles=[RoleSummary.model_validate(r) for r in rbac.get_user_roles(user.id)],
        permissions=[PermissionSummary.model_validate(p) for p in rbac.get_user_permissions(user.id)],
    )
