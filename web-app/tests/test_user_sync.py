"""Tests for matching SSO identities to local users."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from database.models import User
from sso_auth.schemas import SSOUser
from sso_auth.service import (
    UserSyncError,
    find_local_user,
    provision_user_from_sso,
    sync_user_from_sso,
)


def sso_user(email: str = "jane@university.edu", username: str = "jane", **extra) -> SSOUser:
    return SSOUser(id="sso-42", email=email, username=username, **extra)


def add_user(session, email: str, username: str) -> User:
    user = User(email=email, username=username)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


class TestFindLocalUser:
    def test_email_match_wins_over_username(self, session) -> None:
        by_email = add_user(session, "jane@university.edu", "jane.s")
        add_user(session, "other@university.edu", "jane")

        assert find_local_user(session, "jane@university.edu", "jane").id == by_email.id

    def test_falls_back_to_username(self, session) -> None:
        existing = add_user(session, "old-address@university.edu", "jane")
        assert find_local_user(session, "jane@university.edu", "jane").id == existing.id

    def test_no_match(self, session) -> None:
        assert find_local_user(session, "nobody@university.edu", "nobody") is None


class TestSyncUser:
    def test_existing_user(self, session) -> None:
        existing = add_user(session, "jane@university.edu", "jane")

        result = sync_user_from_sso(session, sso_user())

        assert result.success is True
        assert result.user_exists is True
        assert result.user.id == existing.id

    def test_unknown_user_is_not_created(self, session) -> None:
        result = sync_user_from_sso(session, sso_user())

        assert result.success is False
        assert result.user_exists is False
        assert result.error == "user_not_found"
        assert "contact your administrator" in result.error_description
        assert session.exec(select(User)).all() == []

    def test_store_failure_is_sync_error(self) -> None:
        session = MagicMock()
        session.exec.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))

        result = sync_user_from_sso(session, sso_user())

        assert result.success is False
        assert result.error == "sync_error"


class TestProvisionUser:
    def test_creates_user_from_email_and_username_only(self, session) -> None:
        user = provision_user_from_sso(
            session, sso_user(userType="ADMIN", department="Registrar", level=7)
        )

        assert user.email == "jane@university.edu"
        assert user.username == "jane"
        stored = session.exec(select(User)).one()
        assert set(stored.model_dump()) == {"id", "email", "username", "created_at", "updated_at"}

    def test_is_idempotent(self, session) -> None:
        first = provision_user_from_sso(session, sso_user())
        second = provision_user_from_sso(session, sso_user())

        assert first.id == second.id
        assert len(session.exec(select(User)).all()) == 1

    def test_store_failure_raises(self) -> None:
        session = MagicMock()
        session.exec.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))

        with pytest.raises(UserSyncError):
            provision_user_from_sso(session, sso_user())
