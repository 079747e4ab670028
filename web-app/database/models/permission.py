import uuid
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional

from database.models.user import utc_now


class Permission(SQLModel, table=True):
    __tablename__ = "permissions"
    __table_args__ = (UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    resource: str = Field(index=True, max_length=100)  # e.g., "tasks", "users", "reports"
    action: str = Field(max_length=50)  # e.g., "read", "write", "delete"
    description: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def key(self) -> str:
        return f"{self.resource}:{self.action}"


class RolePermission(SQLModel, table=True):
    __tablename__ = "role_permissions"

    role_id: str = Field(foreign_key="roles.id", primary_key=True, ondelete="CASCADE")
    permission_id: str = Field(foreign_key="permissions.id", primary_key=True, index=True, ondelete="CASCADE")
    granted_at: datetime = Field(default_factory=utc_now)
