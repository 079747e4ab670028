import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field
from typing import Optional
from enum import Enum

from database.models.user import utc_now


class RoleName(str, Enum):
    ADMIN = "admin"          # Full access
    MANAGER = "manager"      # Assigns and reviews tasks
    EMPLOYEE = "employee"    # Works on own tasks
    VIEWER = "viewer"        # Read-only


class Role(SQLModel, table=True):
    __tablename__ = "roles"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(unique=True, index=True, max_length=50)  # Store as string, not enum
    description: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class UserRole(SQLModel, table=True):
    __tablename__ = "user_roles"

    user_id: str = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    role_id: str = Field(foreign_key="roles.id", primary_key=True, index=True, ondelete="CASCADE")
    assigned_at: datetime = Field(default_factory=utc_now)
    assigned_by: Optional[str] = Field(default=None, max_length=255)  # Local user id of the assigner
