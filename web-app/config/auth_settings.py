import os
from dotenv import load_dotenv

load_dotenv()

# SSO provider (OAuth2 authorization server)
SSO_CLIENT_ID = os.getenv("SSO_CLIENT_ID", "")
SSO_CLIENT_SECRET = os.getenv("SSO_CLIENT_SECRET", "")
SSO_AUTHORIZE_URL = os.getenv("SSO_AUTHORIZE_URL", "")
SSO_TOKEN_URL = os.getenv("SSO_TOKEN_URL", "")
SSO_USERINFO_URL = os.getenv("SSO_USERINFO_URL", "")
SSO_JWKS_URL = os.getenv("SSO_JWKS_URL", "")
SSO_LOGOUT_URL = os.getenv("SSO_LOGOUT_URL", "")
SSO_EXTEND_SESSION_URL = os.getenv("SSO_EXTEND_SESSION_URL", "")
SSO_SCOPE = os.getenv("SSO_SCOPE") or None

# Where the provider sends the browser back to
APP_CALLBACK_URL = os.getenv("APP_CALLBACK_URL", "http://localhost:3001/api/auth/callback")

# Signing key for the session and OAuth flow cookies
DEV_SESSION_SECRET = "change-me-in-production"
SESSION_SECRET = os.getenv("SESSION_SECRET", DEV_SESSION_SECRET)
SESSION_ALGORITHM = "HS256"

SESSION_COOKIE_NAME = "assignwork_session"
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 7 * 24 * 60 * 60))  # 7 days

OAUTH_FLOW_COOKIE_NAME = "assignwork_oauth_flow"
OAUTH_FLOW_MAX_AGE = 10 * 60  # 10 minutes

# Sliding session extension
SESSION_EXTENSION_SECONDS = 10 * 60  # 10 minutes
MAX_SESSION_DURATION_SECONDS = 6 * 60 * 60  # 6 hours

# Timeout for best-effort calls to the provider (logout, extend-session)
SSO_BEST_EFFORT_TIMEOUT = 5.0

# HS256 keys shorter than this are brute-forceable
MIN_SESSION_SECRET_LENGTH = 32


def validate_session_secret(secret: str, is_production: bool) -> None:
    """Refuse to run production with the development or a weak signing key."""
    if not is_production:
        return
    if not secret or secret == DEV_SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET must be set in production")
    if len(secret) < MIN_SESSION_SECRET_LENGTH:
        raise RuntimeError(f"SESSION_SECRET must be at least {MIN_SESSION_SECRET_LENGTH} characters")
