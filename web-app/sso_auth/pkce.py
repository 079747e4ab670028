"""
PKCE (RFC 7636) and token-lifetime helpers.

Only the S256 challenge method is supported.
"""
import base64
import hashlib
import secrets
import time

CODE_CHALLENGE_METHOD = "S256"
DEFAULT_EXPIRY_BUFFER_SECONDS = 60


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_code_verifier() -> str:
    """43 URL-safe characters from 32 bytes of OS randomness."""
    return secrets.token_urlsafe(32)


def generate_code_challenge(verifier: str) -> str:
    """BASE64URL(SHA256(verifier)) without padding."""
    return _base64url(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_state() -> str:
    """Random CSRF token, independent of the code verifier."""
    return secrets.token_urlsafe(32)


def is_token_expired(expires_at: int, buffer_seconds: int = DEFAULT_EXPIRY_BUFFER_SECONDS) -> bool:
    """True once now is within buffer_seconds of expires_at (epoch ms)."""
    return now_ms() >= expires_at - buffer_seconds * 1000


def calculate_expires_at(expires_in: int) -> int:
    """Absolute expiry in epoch ms for a lifetime given in seconds."""
    return now_ms() + expires_in * 1000
