from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class UserProvisionRequest(BaseModel):
    """SSO identity to grant access to. Anything beyond email and username is ignored."""
    email: str = Field(min_length=3, max_length=255)
    username: str = Field(min_length=1, max_length=255)


class UserSyncRequest(BaseModel):
    users: list[UserProvisionRequest] = Field(min_length=1)


class UserSyncResponse(BaseModel):
    success: bool
    count: int
    message: str


class UserRoleAssign(BaseModel):
    role_id: str


class OperationResponse(BaseModel):
    success: bool
    message: Optional[str] = None
