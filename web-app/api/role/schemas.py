from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)


class RoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RoleListResponse(BaseModel):
    roles: list[RoleResponse]
    total: int


class PermissionCreate(BaseModel):
    resource: str = Field(min_length=1, max_length=100, pattern=r"^[^:\s]+$")
    action: str = Field(min_length=1, max_length=50, pattern=r"^[^:\s]+$")
    description: Optional[str] = Field(default=None, max_length=500)


class PermissionResponse(BaseModel):
    id: str
    resource: str
    action: str
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class PermissionListResponse(BaseModel):
    permissions: list[PermissionResponse]
    total: int
