"""
OAuth2 client for the SSO provider.
Authorization code flow with PKCE, token refresh and provider logout.
"""

import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from config.auth_settings import SSO_BEST_EFFORT_TIMEOUT
from sso_auth.config import SSOConfig, get_sso_config
from sso_auth.pkce import (
    CODE_CHALLENGE_METHOD,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
)
from sso_auth.schemas import SSOUser, TokenResponse
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AuthorizationResult:
    authorization_url: str
    state: str
    code_verifier: str


@dataclass
class CallbackResult:
    success: bool
    tokens: Optional[TokenResponse] = None
    user_info: Optional[SSOUser] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OAuth2Client:
    """
    Talks to the one SSO authorization server this app trusts.

    The exchange, userinfo and refresh calls return None on any failure so
    callers can treat None as "not usable"; they never raise.
    """

    def __init__(
        self,
        config: Optional[SSOConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.config = config or get_sso_config()
        self._http_client = http_client
        self.timeout = timeout

    def is_configured(self) -> bool:
        return self.config.is_configured()

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    # =========================================================================
    # Authorization
    # =========================================================================

    def get_authorization_url(self, state: str, code_challenge: str, scope: Optional[str] = None) -> str:
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.callback_url,
            "response_type": "code",
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": CODE_CHALLENGE_METHOD,
        }
        scope = scope or self.config.scope
        if scope:
            params["scope"] = scope

        return f"{self.config.authorize_url}?{urlencode(params)}"

    def initiate_auth(
        self,
        state: Optional[str] = None,
        code_verifier: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> AuthorizationResult:
        """
        Start the authorization code flow.

        The caller must keep state and code_verifier until the callback.
        """
        if not self.is_configured():
            raise ValueError("SSO provider is not configured")

        code_verifier = code_verifier or generate_code_verifier()
        state = state or generate_state()

        return AuthorizationResult(
            authorization_url=self.get_authorization_url(
                state, generate_code_challenge(code_verifier), scope
            ),
            state=state,
            code_verifier=code_verifier,
        )

    async def handle_callback(
        self,
        code: str,
        state: str,
        code_verifier: str,
        expected_state: str,
    ) -> CallbackResult:
        """
        Validate state, exchange the code, then fetch the user's identity.

        A state mismatch fails before any request leaves the process.
        """
        if not expected_state or not secrets.compare_digest(
            state.encode("utf-8"), expected_state.encode("utf-8")
        ):
            logger.warning("[SSO] OAuth state mismatch on callback")
            return CallbackResult(
                success=False,
                error="invalid_state",
                error_description="State parameter mismatch - possible CSRF attack",
            )

        tokens = await self.exchange_code_for_token(code, code_verifier)
        if tokens is None:
            return CallbackResult(
                success=False,
                error="token_exchange_failed",
                error_description="Failed to exchange authorization code for tokens",
            )

        user_info = await self.fetch_user_info(tokens.access_token)
        if user_info is None:
            return CallbackResult(
                success=False,
                error="userinfo_fetch_failed",
                error_description="Failed to fetch user information from SSO",
            )

        return CallbackResult(success=True, tokens=tokens, user_info=user_info)

    # =========================================================================
    # Token endpoint
    # =========================================================================

    async def _post_token(self, payload: Dict[str, Any], label: str) -> Optional[TokenResponse]:
        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.token_url,
                    json=payload,
                    headers={"Content-Type": "application/json", "Accept": "application/json"},
                )

            if response.status_code != 200:
                logger.error(f"[SSO] {label} failed: {response.status_code} - {response.text}")
                return None

            return TokenResponse.model_validate(response.json())

        except httpx.HTTPError as e:
            logger.error(f"[SSO] {label} request error: {e!r}")
            return None
        except (ValueError, ValidationError) as e:
            logger.error(f"[SSO] {label} returned an unusable body: {e}")
            return None

    async def exchange_code_for_token(self, code: str, code_verifier: str) -> Optional[TokenResponse]:
        tokens = await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.config.client_id,
                "redirect_uri": self.config.callback_url,
                "code_verifier": code_verifier,
            },
            "Token exchange",
        )
        if tokens:
            logger.info("[SSO] Exchanged authorization code for tokens")
        return tokens

    async def refresh_access_token(self, refresh_token: str) -> Optional[TokenResponse]:
        tokens = await self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.config.client_id,
            },
            "Token refresh",
        )
        if tokens:
            logger.info("[SSO] Refreshed access token")
        return tokens

    # =========================================================================
    # Userinfo
    # =========================================================================

    async def fetch_user_info(self, access_token: str) -> Optional[SSOUser]:
        try:
            async with self._client() as client:
                response = await client.get(
                    self.config.userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
                )

            if response.status_code != 200:
                logger.error(f"[SSO] Userinfo fetch failed: {response.status_code} - {response.text}")
                return None

            return SSOUser.model_validate(response.json())

        except httpx.HTTPError as e:
            logger.error(f"[SSO] Userinfo request error: {e!r}")
            return None
        except (ValueError, ValidationError) as e:
            logger.error(f"[SSO] Userinfo returned an unusable body: {e}")
            return None

    # =========================================================================
    # Best-effort calls
    # =========================================================================

    async def logout(self, access_token: str) -> bool:
        """
        Ask the provider to end its session. Non-2xx and network errors are
        logged and reported as False.
        """
        if not self.config.logout_url:
            return False

        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.logout_url,
                    json={},
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=SSO_BEST_EFFORT_TIMEOUT,
                )
        except httpx.HTTPError as e:
            logger.warning(f"[SSO] Logout request error: {e!r}")
            return False

        if not response.is_success:
            logger.warning(f"[SSO] Logout returned: {response.status_code}")
            return False

        logger.info("[SSO] Provider session terminated")
        return True

    async def extend_session(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Notify the provider of a session extension; returns its JSON body or None."""
        if not self.config.extend_session_url:
            return None

        try:
            async with self._client() as client:
                response = await client.post(
                    self.config.extend_session_url,
                    json={},
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=SSO_BEST_EFFORT_TIMEOUT,
                )
            body = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"[SSO] Extend-session request error: {e!r}")
            return None
        except ValueError:
            logger.warning(f"[SSO] Extend-session returned a non-JSON body ({response.status_code})")
            return None

        return body if isinstance(body, dict) else None
