"""
Role-based access control for AssignWork.

Roles and permissions live in this application's own tables and are
independent of the user type the SSO provider reports. The model is flat
and allow-only: a user may perform an action on a resource if and only if
one of the user's roles has been granted exactly that (resource, action).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from database.models import Permission, Role, RolePermission, User, UserRole
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class PermissionCheck:
    allowed: bool
    reason: Optional[str] = None
    error: bool = False  # True when the store failed and the denial is fail-closed


@dataclass
class RBACResult:
    success: bool
    error: Optional[str] = None
    role: Optional[Role] = None
    permission: Optional[Permission] = None


class RBACService:
    """Permission checks and role/permission graph maintenance.

    Every call reads the store; nothing is cached between calls.
    """

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # Checks
    # =========================================================================

    def check_permission(self, user_id: str, resource: str, action: str) -> PermissionCheck:
        """Decide whether user_id may perform action on resource."""
        try:
            match = self.session.exec(
                select(Permission.id)
                .join(RolePermission, RolePermission.permission_id == Permission.id)
                .join(UserRole, UserRole.role_id == RolePermission.role_id)
                .where(
                    UserRole.user_id == user_id,
                    Permission.resource == resource,
                    Permission.action == action,
                )
                .limit(1)
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error checking permission {resource}:{action} for user {user_id}: {e}")
            return PermissionCheck(allowed=False, reason="Error checking permissions", error=True)

        if match is not None:
            return PermissionCheck(allowed=True)

        return PermissionCheck(
            allowed=False,
            reason=f"User does not have permission to {action} {resource}",
        )

    def get_user_roles(self, user_id: str) -> List[Role]:
        try:
            return list(self.session.exec(
                select(Role)
                .join(UserRole, UserRole.role_id == Role.id)
                .where(UserRole.user_id == user_id)
                .order_by(Role.name)
            ).all())
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error fetching roles for user {user_id}: {e}")
            return []

    def get_user_permissions(self, user_id: str) -> List[Permission]:
        """All permissions across the user's roles, one entry per resource:action."""
        try:
            rows = self.session.exec(
                select(Permission)
                .join(RolePermission, RolePermission.permission_id == Permission.id)
                .join(UserRole, UserRole.role_id == RolePermission.role_id)
                .where(UserRole.user_id == user_id)
            ).all()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error fetching permissions for user {user_id}: {e}")
            return []

        unique: dict[str, Permission] = {}
        for permission in rows:
            unique.setdefault(permission.key, permission)
        return list(unique.values())

    def get_role_permissions(self, role_id: str) -> List[Permission]:
        try:
            return list(self.session.exec(
                select(Permission)
                .join(RolePermission, RolePermission.permission_id == Permission.id)
                .where(RolePermission.role_id == role_id)
                .order_by(Permission.resource, Permission.action)
            ).all())
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error fetching permissions for role {role_id}: {e}")
            return []

    # =========================================================================
    # User <-> Role
    # =========================================================================

    def assign_role(self, user_id: str, role_id: str, assigned_by: Optional[str] = None) -> RBACResult:
        """Give a role to a user. Assigning a role the user already holds succeeds."""
        try:
            if self.session.get(User, user_id) is None:
                return RBACResult(success=False, error="User not found")

            role = self.session.get(Role, role_id)
            if role is None:
                return RBACResult(success=False, error="Role not found")

            if self.session.get(UserRole, (user_id, role_id)) is not None:
                return RBACResult(success=True, role=role)

            self.session.add(UserRole(user_id=user_id, role_id=role_id, assigned_by=assigned_by))
            self.session.commit()
            logger.info(f"[RBAC] Assigned role {role.name} to user {user_id}")
            return RBACResult(success=True, role=role)

        except IntegrityError:
            # Lost a race with a concurrent assignment of the same pair
            self.session.rollback()
            if self.session.get(UserRole, (user_id, role_id)) is not None:
                return RBACResult(success=True)
            return RBACResult(success=False, error="Failed to assign role")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error assigning role {role_id} to user {user_id}: {e}")
            return RBACResult(success=False, error="Failed to assign role")

    def remove_role(self, user_id: str, role_id: str) -> RBACResult:
        try:
            user_role = self.session.get(UserRole, (user_id, role_id))
            if user_role is None:
                return RBACResult(success=False, error="Role is not assigned to user")

            self.session.delete(user_role)
            self.session.commit()
            logger.info(f"[RBAC] Removed role {role_id} from user {user_id}")
            return RBACResult(success=True)

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error removing role {role_id} from user {user_id}: {e}")
            return RBACResult(success=False, error="Failed to remove role")

    # =========================================================================
    # Roles & Permissions
    # =========================================================================

    def list_roles(self) -> List[Role]:
        return list(self.session.exec(select(Role).order_by(Role.name)).all())

    def list_permissions(self) -> List[Permission]:
        return list(self.session.exec(
            select(Permission).order_by(Permission.resource, Permission.action)
        ).all())

    def get_role_by_name(self, name: str) -> Optional[Role]:
        return self.session.exec(select(Role).where(Role.name == name)).first()

    def get_permission(self, resource: str, action: str) -> Optional[Permission]:
        return self.session.exec(
            select(Permission).where(Permission.resource == resource, Permission.action == action)
        ).first()

    def create_role(self, name: str, description: Optional[str] = None) -> RBACResult:
        role = Role(name=name, description=description)
        try:
            self.session.add(role)
            self.session.commit()
            self.session.refresh(role)
        except IntegrityError:
            self.session.rollback()
            return RBACResult(success=False, error=f"Role '{name}' already exists")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error creating role {name}: {e}")
            return RBACResult(success=False, error="Failed to create role")

        logger.info(f"[RBAC] Created role {name}")
        return RBACResult(success=True, role=role)

    def create_permission(self, resource: str, action: str, description: Optional[str] = None) -> RBACResult:
        permission = Permission(resource=resource, action=action, description=description)
        try:
            self.session.add(permission)
            self.session.commit()
            self.session.refresh(permission)
        except IntegrityError:
            self.session.rollback()
            return RBACResult(success=False, error=f"Permission '{resource}:{action}' already exists")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error creating permission {resource}:{action}: {e}")
            return RBACResult(success=False, error="Failed to create permission")

        logger.info(f"[RBAC] Created permission {resource}:{action}")
        return RBACResult(success=True, permission=permission)

    def grant_permission_to_role(self, role_id: str, permission_id: str) -> RBACResult:
        """Grant is idempotent: granting an existing grant succeeds."""
        try:
            role = self.session.get(Role, role_id)
            if role is None:
                return RBACResult(success=False, error="Role not found")

            permission = self.session.get(Permission, permission_id)
            if permission is None:
                return RBACResult(success=False, error="Permission not found")

            if self.session.get(RolePermission, (role_id, permission_id)) is None:
                self.session.add(RolePermission(role_id=role_id, permission_id=permission_id))
                role.updated_at = datetime.now(timezone.utc)
                self.session.add(role)
                self.session.commit()
                logger.info(f"[RBAC] Granted {permission.key} to role {role.name}")

            return RBACResult(success=True, role=role, permission=permission)

        except IntegrityError:
            self.session.rollback()
            if self.session.get(RolePermission, (role_id, permission_id)) is not None:
                return RBACResult(success=True)
            return RBACResult(success=False, error="Failed to grant permission")
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error granting permission {permission_id} to role {role_id}: {e}")
            return RBACResult(success=False, error="Failed to grant permission")

    def revoke_permission_from_role(self, role_id: str, permission_id: str) -> RBACResult:
        """Revoking a grant that does not exist is not an error."""
        try:
            grant = self.session.get(RolePermission, (role_id, permission_id))
            if grant is None:
                return RBACResult(success=True)

            self.session.delete(grant)
            self.session.commit()
            logger.info(f"[RBAC] Revoked permission {permission_id} from role {role_id}")
            return RBACResult(success=True)

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error revoking permission {permission_id} from role {role_id}: {e}")
            return RBACResult(success=False, error="Failed to revoke permission")

    def delete_role(self, role_id: str) -> RBACResult:
        """Delete a role; its user and permission links go with it."""
        try:
            role = self.session.get(Role, role_id)
            if role is None:
                return RBACResult(success=False, error="Role not found")

            name = role.name
            self.session.delete(role)
            self.session.commit()
            logger.info(f"[RBAC] Deleted role {name}")
            return RBACResult(success=True)

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[RBAC] Error deleting role {role_id}: {e}")
            return RBACResult(success=False, error="Failed to delete role")
