from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TokenResponse(BaseModel):
    """Token endpoint response."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"
    expires_in: int
    scope: Optional[str] = None


class SSOUser(BaseModel):
    """Identity returned by the provider's userinfo endpoint.

    Provider-only attributes (userType, department, level, ...) are accepted
    here but never copied into the local user record.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    email: str
    username: str


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionUser(CamelModel):
    id: str
    email: str
    username: str
    created_at: datetime
    updated_at: datetime


class SessionData(CamelModel):
    """Contents of the session cookie."""
    user: SessionUser
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_at: int  # epoch milliseconds
    created_at: Optional[int] = None  # epoch milliseconds


class OAuthFlowData(CamelModel):
    """State kept between /login and /callback."""
    state: str
    code_verifier: str
    return_to: Optional[str] = None
