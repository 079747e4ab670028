"""
Signed cookie payloads.

The session and the in-flight OAuth flow are both carried by the browser as
HS256 JWTs. A token that fails verification, has expired, or lacks required
fields decodes to None, which callers treat as "no session".
"""
import time
from typing import Optional, Type, TypeVar

from jose import jwt, JWTError
from pydantic import BaseModel, ValidationError

from config.auth_settings import (
    SESSION_SECRET,
    SESSION_ALGORITHM,
    SESSION_MAX_AGE,
    OAUTH_FLOW_MAX_AGE,
)
from sso_auth.schemas import OAuthFlowData, SessionData
from utils.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _encode(model: BaseModel, max_age: int, secret: str) -> str:
    now = int(time.time())
    claims = model.model_dump(by_alias=True, mode="json", exclude_none=True)
    claims.update({"iat": now, "exp": now + max_age})
    return jwt.encode(claims, secret, algorithm=SESSION_ALGORITHM)


def _decode(token: Optional[str], model: Type[ModelT], secret: str) -> Optional[ModelT]:
    if not token:
        return None
    try:
        claims = jwt.decode(token, secret, algorithms=[SESSION_ALGORITHM])
        return model.model_validate(claims)
    except JWTError as e:
        logger.debug(f"Rejected {model.__name__} cookie: {e}")
        return None
    except ValidationError:
        logger.debug(f"Malformed {model.__name__} cookie")
        return None


def encode_session(data: SessionData, secret: str = SESSION_SECRET, max_age: int = SESSION_MAX_AGE) -> str:
    return _encode(data, max_age, secret)


def decode_session(token: Optional[str], secret: str = SESSION_SECRET) -> Optional[SessionData]:
    return _decode(token, SessionData, secret)


def encode_oauth_flow(data: OAuthFlowData, secret: str = SESSION_SECRET, max_age: int = OAUTH_FLOW_MAX_AGE) -> str:
    return _encode(data, max_age, secret)


def decode_oauth_flow(token: Optional[str], secret: str = SESSION_SECRET) -> Optional[OAuthFlowData]:
    return _decode(token, OAuthFlowData, secret)
