"""
Database seeding script for roles, permissions and starter users.
Run this after database tables are created.
"""
from typing import Optional

from sqlmodel import Session, select

from database.connection import Database
from database.models import Role, RoleName, Permission, RolePermission, User, UserRole
from core.permissions import Permissions, PERMISSION_DEFINITIONS, split_permission
from utils.logger import get_logger

logger = get_logger(__name__)


# Define roles (using .value to store as strings in DB)
ROLES = [
    {"name": RoleName.ADMIN.value, "description": "Administrator with full access"},
    {"name": RoleName.MANAGER.value, "description": "Manager who can assign and view tasks"},
    {"name": RoleName.EMPLOYEE.value, "description": "Regular employee who can view and complete tasks"},
    {"name": RoleName.VIEWER.value, "description": "Read-only access to tasks"},
]

# Define which permissions each role has
ROLE_PERMISSIONS = {
    RoleName.ADMIN: list(Permissions),
    RoleName.MANAGER: [
        Permissions.TASKS_CREATE,
        Permissions.TASKS_READ,
        Permissions.TASKS_UPDATE,
        Permissions.TASKS_WRITE,
        Permissions.TASKS_ASSIGN,
        Permissions.USERS_READ,
        Permissions.REPORTS_READ,
        Permissions.REPORTS_GENERATE,
    ],
    RoleName.EMPLOYEE: [
        Permissions.TASKS_READ,
        Permissions.TASKS_UPDATE,
    ],
    RoleName.VIEWER: [
        Permissions.TASKS_READ,
    ],
}

# Starter accounts, as if provisioned from SSO by an administrator
USERS = [
    {"email": "admin@university.edu", "username": "admin", "role": RoleName.ADMIN},
    {"email": "john.doe@university.edu", "username": "johndoe", "role": RoleName.MANAGER},
    {"email": "jane.smith@university.edu", "username": "janesmith", "role": RoleName.EMPLOYEE},
    {"email": "bob.wilson@university.edu", "username": "bobwilson", "role": RoleName.EMPLOYEE},
    {"email": "alice.johnson@university.edu", "username": "alicejohnson", "role": RoleName.VIEWER},
]


def seed_database(session: Session, include_users: bool = True) -> None:
    """Seed roles, permissions and grants. Running it twice changes nothing."""
    # Seed permissions
    permission_map = {}
    for perm_data in PERMISSION_DEFINITIONS:
        existing = session.exec(
            select(Permission).where(
                Permission.resource == perm_data["resource"],
                Permission.action == perm_data["action"],
            )
        ).first()

        if existing:
            permission_map[existing.key] = existing
        else:
            permission = Permission(**perm_data)
            session.add(permission)
            session.flush()
            permission_map[permission.key] = permission

    # Seed roles
    role_map = {}
    for role_data in ROLES:
        existing = get_role_by_name(session, role_data["name"])

        if existing:
            role_map[role_data["name"]] = existing
        else:
            role = Role(**role_data)
            session.add(role)
            session.flush()
            role_map[role_data["name"]] = role

    # Seed role-permission associations
    for role_name, permissions in ROLE_PERMISSIONS.items():
        role = role_map[role_name.value]
        for perm in permissions:
            resource, action = split_permission(perm)
            permission = permission_map[f"{resource}:{action}"]

            if session.get(RolePermission, (role.id, permission.id)) is None:
                session.add(RolePermission(role_id=role.id, permission_id=permission.id))

    if include_users:
        for user_data in USERS:
            user = session.exec(select(User).where(User.email == user_data["email"])).first()
            if not user:
                user = User(email=user_data["email"], username=user_data["username"])
                session.add(user)
                session.flush()

            role = role_map[user_data["role"].value]
            if session.get(UserRole, (user.id, role.id)) is None:
                session.add(UserRole(user_id=user.id, role_id=role.id, assigned_by="seed"))

    session.commit()
    logger.info("Database seeded with roles and permissions")


def get_role_by_name(session: Session, role_name: RoleName | str) -> Optional[Role]:
    """Get a role by its name."""
    role_name_str = role_name.value if hasattr(role_name, 'value') else role_name
    return session.exec(select(Role).where(Role.name == role_name_str)).first()


if __name__ == "__main__":
    database = Database()
    database.create_db_and_tables()
    with database.session() as session:
        seed_database(session)
    database.dispose()
