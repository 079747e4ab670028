"""
Session lifecycle for AssignWork.

The browser holds the whole session in a signed cookie; the server keeps no
session table. A SessionManager is built per request around a
SessionCookieStore, which reads the inbound cookies and remembers what has to
be written back. Whoever builds the HTTP response calls store.apply(response).
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from fastapi import Response

from config.auth_settings import (
    MAX_SESSION_DURATION_SECONDS,
    OAUTH_FLOW_COOKIE_NAME,
    OAUTH_FLOW_MAX_AGE,
    SESSION_COOKIE_NAME,
    SESSION_EXTENSION_SECONDS,
    SESSION_MAX_AGE,
    SESSION_SECRET,
)
from sso_auth.client import OAuth2Client
from sso_auth.pkce import calculate_expires_at, is_token_expired, now_ms
from sso_auth.schemas import OAuthFlowData, SessionData
from sso_auth.token import decode_oauth_flow, decode_session, encode_oauth_flow, encode_session
from utils.logger import get_logger

logger = get_logger(__name__)

_UNSET = object()


class SessionCookieStore:
    """Reads the session and OAuth flow cookies and buffers writes to them."""

    def __init__(self, cookies: Mapping[str, str], secure: bool = False, secret: str = SESSION_SECRET):
        self.secure = secure
        self.secret = secret
        self._session: Any = _UNSET
        self._flow: Any = _UNSET
        self._raw_session = cookies.get(SESSION_COOKIE_NAME)
        self._raw_flow = cookies.get(OAUTH_FLOW_COOKIE_NAME)
        # cookie name -> (value, max_age), value None means delete
        self._pending: dict[str, tuple[Optional[str], int]] = {}

    # Session cookie

    def load_session(self) -> Optional[SessionData]:
        if self._session is _UNSET:
            self._session = decode_session(self._raw_session, self.secret)
        return self._session

    def save_session(self, data: SessionData) -> None:
        self._session = data
        self._pending[SESSION_COOKIE_NAME] = (encode_session(data, self.secret, SESSION_MAX_AGE), SESSION_MAX_AGE)

    def clear_session(self) -> None:
        self._session = None
        self._pending[SESSION_COOKIE_NAME] = (None, 0)

    # OAuth flow cookie

    def load_oauth_flow(self) -> Optional[OAuthFlowData]:
        if self._flow is _UNSET:
            self._flow = decode_oauth_flow(self._raw_flow, self.secret)
        return self._flow

    def save_oauth_flow(self, data: OAuthFlowData) -> None:
        self._flow = data
        self._pending[OAUTH_FLOW_COOKIE_NAME] = (
            encode_oauth_flow(data, self.secret, OAUTH_FLOW_MAX_AGE),
            OAUTH_FLOW_MAX_AGE,
        )

    def clear_oauth_flow(self) -> None:
        self._flow = None
        self._pending[OAUTH_FLOW_COOKIE_NAME] = (None, 0)

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def apply(self, response: Response) -> Response:
        """Write buffered cookie changes onto response."""
        for name, (value, max_age) in self._pending.items():
            if value is None:
                response.delete_cookie(
                    key=name, path="/", secure=self.secure, httponly=True, samesite="lax"
                )
            else:
                response.set_cookie(
                    key=name,
                    value=value,
                    max_age=max_age,
                    path="/",
                    secure=self.secure,
                    httponly=True,
                    samesite="lax",
                )
        return response


@dataclass
class ExtendSessionResult:
    success: bool
    expires_at: Optional[int] = None
    max_session_reached: bool = False
    max_approaching: bool = False
    remaining_session_time: Optional[int] = None
    error: Optional[str] = None


class SessionManager:
    """
    High-level session operations.

    NoSession -> PendingCallback (flow cookie) -> Active -> Refreshing ->
    Active | Expired -> NoSession. Refresh is attempted at most once per call.
    """

    def __init__(self, store: SessionCookieStore, oauth_client: OAuth2Client):
        self.store = store
        self.oauth_client = oauth_client

    # =========================================================================
    # Basic operations
    # =========================================================================

    def create_session(self, data: SessionData) -> None:
        if data.created_at is None:
            data = data.model_copy(update={"created_at": now_ms()})
        self.store.save_session(data)

    def get_current_session(self) -> Optional[SessionData]:
        return self.store.load_session()

    def get_session_user(self):
        session = self.get_current_session()
        return session.user if session else None

    def update_session(self, **updates: Any) -> bool:
        """Merge updates into the current session. False when there is none."""
        session = self.get_current_session()
        if session is None:
            return False
        self.store.save_session(session.model_copy(update=updates))
        return True

    def is_session_valid(self) -> bool:
        session = self.get_current_session()
        return session is not None and now_ms() < session.expires_at

    # =========================================================================
    # OAuth flow (PendingCallback)
    # =========================================================================

    def store_oauth_flow(self, state: str, code_verifier: str, return_to: Optional[str] = None) -> None:
        self.store.save_oauth_flow(OAuthFlowData(state=state, code_verifier=code_verifier, return_to=return_to))

    def get_oauth_flow(self) -> Optional[OAuthFlowData]:
        return self.store.load_oauth_flow()

    def clear_oauth_flow(self) -> None:
        self.store.clear_oauth_flow()

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh_session(self) -> Optional[int]:
        """Refresh unconditionally. Returns the new expires_in, or None on failure."""
        session = self.get_current_session()
        if session is None:
            return None

        tokens = await self.oauth_client.refresh_access_token(session.refresh_token)
        if tokens is None:
            logger.warning(f"Token refresh failed for user {session.user.id}")
            return None

        self.update_session(
            access_token=tokens.access_token,
            # Providers that do not rotate refresh tokens omit it
            refresh_token=tokens.refresh_token or session.refresh_token,
            expires_at=calculate_expires_at(tokens.expires_in),
        )
        return tokens.expires_in

    async def refresh_session_if_needed(self) -> bool:
        """
        Refresh when the access token is within 60s of expiry.

        Returns False if there is no session or the refresh failed; the
        previous session is left in place for the caller to clear.
        """
        session = self.get_current_session()
        if session is None:
            return False

        if not is_token_expired(session.expires_at):
            return True

        return await self.refresh_session() is not None

    async def get_access_token(self) -> Optional[str]:
        if not await self.refresh_session_if_needed():
            return None
        session = self.get_current_session()
        return session.access_token if session else None

    async def validate_session_and_get_user_id(self) -> Optional[str]:
        session = self.get_current_session()
        if session is None:
            return None

        if is_token_expired(session.expires_at):
            if not await self.refresh_session_if_needed():
                return None
            session = self.get_current_session()

        return session.user.id if session else None

    # =========================================================================
    # Extension & termination
    # =========================================================================

    async def extend_session(self) -> ExtendSessionResult:
        """Slide expiry forward, never past created_at + the maximum duration."""
        session = self.get_current_session()
        if session is None:
            return ExtendSessionResult(success=False, error="No active session")

        now = now_ms()
        created_at = session.created_at or now
        max_expires_at = created_at + MAX_SESSION_DURATION_SECONDS * 1000

        if now >= max_expires_at:
            return ExtendSessionResult(
                success=False, max_session_reached=True, error="Maximum session duration reached"
            )

        provider_reply = await self.oauth_client.extend_session(session.access_token)
        if provider_reply and provider_reply.get("maxSessionReached"):
            return ExtendSessionResult(
                success=False, max_session_reached=True, error="Maximum session duration reached"
            )

        new_expires_at = min(now + SESSION_EXTENSION_SECONDS * 1000, max_expires_at)
        self.update_session(expires_at=new_expires_at, created_at=created_at)

        return ExtendSessionResult(
            success=True,
            expires_at=new_expires_at,
            max_approaching=(max_expires_at - new_expires_at) < SESSION_EXTENSION_SECONDS * 1000,
            remaining_session_time=max_expires_at - now,
        )

    async def terminate_session(self) -> bool:
        """
        Clear the local session, then tell the provider. The local clear
        stands even if the provider call fails.
        """
        session = self.get_current_session()
        self.store.clear_session()

        if session is not None:
            await self.oauth_client.logout(session.access_token)

        return True
