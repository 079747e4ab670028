"""
Centralized permission definitions.
All permission names should be referenced from here.
"""
from enum import Enum


class Permissions(str, Enum):
    # Tasks
    TASKS_CREATE = "tasks:create"
    TASKS_READ = "tasks:read"
    TASKS_UPDATE = "tasks:update"
    TASKS_WRITE = "tasks:write"
    TASKS_DELETE = "tasks:delete"
    TASKS_ASSIGN = "tasks:assign"

    # User management
    USERS_READ = "users:read"
    USERS_MANAGE = "users:manage"

    # Reports
    REPORTS_READ = "reports:read"
    REPORTS_GENERATE = "reports:generate"

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        return self.value.split(":", 1)[1]


def split_permission(permission: "Permissions | str") -> tuple[str, str]:
    """Split "resource:action" into its two parts."""
    value = permission.value if isinstance(permission, Permissions) else permission
    resource, sep, action = value.partition(":")
    if not sep or not resource or not action:
        raise ValueError(f"Permission must look like 'resource:action', got {value!r}")
    return resource, action


# Permission definitions for database seeding
PERMISSION_DEFINITIONS = [
    # Tasks
    {"resource": "tasks", "action": "create", "description": "Create new tasks"},
    {"resource": "tasks", "action": "read", "description": "View tasks"},
    {"resource": "tasks", "action": "update", "description": "Update tasks"},
    {"resource": "tasks", "action": "write", "description": "Create and edit tasks"},
    {"resource": "tasks", "action": "delete", "description": "Delete tasks"},
    {"resource": "tasks", "action": "assign", "description": "Assign tasks to users"},

    # User management
    {"resource": "users", "action": "read", "description": "View users"},
    {"resource": "users", "action": "manage", "description": "Manage users, roles and permissions"},

    # Reports
    {"resource": "reports", "action": "read", "description": "View reports"},
    {"resource": "reports", "action": "generate", "description": "Generate reports"},
]
