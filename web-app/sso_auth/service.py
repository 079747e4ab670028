from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from database.models import User
from sso_auth.schemas import SSOUser
from utils.logger import get_logger

logger = get_logger(__name__)

USER_NOT_FOUND_DESCRIPTION = (
    "You do not have access to AssignWork. Please contact your administrator to request access."
)


class UserSyncError(Exception):
    """The local store could not be read or written during user sync."""


@dataclass
class SyncResult:
    success: bool
    user_exists: bool
    user: Optional[User] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email)).first()


def get_user_by_username(session: Session, username: str) -> Optional[User]:
    return session.exec(select(User).where(User.username == username)).first()


def find_local_user(session: Session, email: str, username: str) -> Optional[User]:
    """Find the local user for an SSO identity. Email is tried before username."""
    return get_user_by_email(session, email) or get_user_by_username(session, username)


def create_local_user(session: Session, email: str, username: str) -> User:
    """Create a user from email and username only."""
    user = User(email=email, username=username)
    try:
        session.add(user)
        session.commit()
        session.refresh(user)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error creating local user {username}: {e}")
        raise UserSyncError("Failed to create local user") from e

    logger.info(f"Created local user {user.id} ({username})")
    return user


def sync_user_from_sso(session: Session, sso_user: SSOUser) -> SyncResult:
    """Match an authenticated SSO identity to its local user.

    Users are never created here; an administrator has to provision them
    first, otherwise the result is user_not_found.
    """
    try:
        local_user = find_local_user(session, sso_user.email, sso_user.username)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Error synchronizing user from SSO: {e}")
        return SyncResult(
            success=False,
            user_exists=False,
            error="sync_error",
            error_description="Unable to verify your account right now. Please try again later.",
        )

    if local_user:
        return SyncResult(success=True, user_exists=True, user=local_user)

    logger.info(f"SSO user {sso_user.username} has no local account")
    return SyncResult(
        success=False,
        user_exists=False,
        error="user_not_found",
        error_description=USER_NOT_FOUND_DESCRIPTION,
    )


def provision_user_from_sso(session: Session, sso_user: SSOUser) -> User:
    """Administrative path: return the existing local user or create one."""
    try:
        existing_user = find_local_user(session, sso_user.email, sso_user.username)
    except SQLAlchemyError as e:
        session.rollback()
        raise UserSyncError("Failed to look up local user") from e

    if existing_user:
        return existing_user

    try:
        return create_local_user(session, sso_user.email, sso_user.username)
    except UserSyncError as e:
        # A concurrent provision may have inserted the same identity first
        if isinstance(e.__cause__, IntegrityError):
            existing_user = find_local_user(session, sso_user.email, sso_user.username)
            if existing_user:
                return existing_user
        raise
