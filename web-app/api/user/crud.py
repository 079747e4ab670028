import math
from typing import Optional

from sqlalchemy import func, or_
from sqlmodel import Session, select

from database.models import User


def get_user(session: Session, user_id: str) -> Optional[User]:
    """Get user by ID."""
    return session.get(User, user_id)


def _search_filter(search: Optional[str]):
    if not search:
        return None
    # Wildcards typed by the caller match literally
    escaped = search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(
        func.lower(User.email).like(pattern, escape="\\"),
        func.lower(User.username).like(pattern, escape="\\"),
    )


def list_users(session: Session, page: int = 1, limit: int = 10, search: Optional[str] = None) -> list[User]:
    """Newest first, optionally filtered by a case-insensitive email/username match."""
    query = select(User)
    condition = _search_filter(search)
    if condition is not None:
        query = query.where(condition)
    query = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    return list(session.exec(query).all())


def count_users(session: Session, search: Optional[str] = None) -> int:
    query = select(func.count()).select_from(User)
    condition = _search_filter(search)
    if condition is not None:
        query = query.where(condition)
    return session.exec(query).one()


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def delete_user(session: Session, user: User) -> None:
    """Delete a user; role assignments go with it."""
    session.delete(user)
    session.commit()
