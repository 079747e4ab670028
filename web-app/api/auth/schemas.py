from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class RoleSummary(BaseModel):
    id: str
    name: str
    description: Optional[str]

    class Config:
        from_attributes = True


class PermissionSummary(BaseModel):
    id: str
    resource: str
    action: str
    description: Optional[str]

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    id: str
    email: str
    username: str
    created_at: datetime
    expires_at: int
    roles: list[RoleSummary]
    permissions: list[PermissionSummary]


class LogoutResponse(BaseModel):
    success: bool
    message: str


class RefreshResponse(BaseModel):
    success: bool
    expires_in: int


class ExtendSessionResponse(BaseModel):
    success: bool
    expiresAt: Optional[int] = None
    maxSessionReached: bool = False
    maxApproaching: bool = False
    remainingSessionTime: Optional[int] = None
    error: Optional[str] = None
