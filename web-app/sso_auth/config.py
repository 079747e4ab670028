from dataclasses import dataclass
from typing import Optional

from config.auth_settings import (
    SSO_CLIENT_ID,
    SSO_CLIENT_SECRET,
    SSO_AUTHORIZE_URL,
    SSO_TOKEN_URL,
    SSO_USERINFO_URL,
    SSO_JWKS_URL,
    SSO_LOGOUT_URL,
    SSO_EXTEND_SESSION_URL,
    SSO_SCOPE,
    APP_CALLBACK_URL,
)


@dataclass(frozen=True)
class SSOConfig:
    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    jwks_url: str
    logout_url: str
    extend_session_url: str
    callback_url: str
    scope: Optional[str] = None

    def is_configured(self) -> bool:
        """Check the endpoints needed for the login flow are set."""
        return bool(
            self.client_id
            and self.authorize_url
            and self.token_url
            and self.userinfo_url
            and self.callback_url
        )


def get_sso_config() -> SSOConfig:
    return SSOConfig(
        client_id=SSO_CLIENT_ID,
        client_secret=SSO_CLIENT_SECRET,
        authorize_url=SSO_AUTHORIZE_URL,
        token_url=SSO_TOKEN_URL,
        userinfo_url=SSO_USERINFO_URL,
        jwks_url=SSO_JWKS_URL,
        logout_url=SSO_LOGOUT_URL,
        extend_session_url=SSO_EXTEND_SESSION_URL,
        callback_url=APP_CALLBACK_URL,
        scope=SSO_SCOPE,
    )
