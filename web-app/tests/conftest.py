"""Shared test fixtures.

Provides:
  - An in-memory SQLite Database per test
  - A recording mock HTTP transport for httpx (no request leaves the process)
  - An OAuth2Client wired to that transport
  - Helpers to seed RBAC data and mint session cookies
"""

from datetime import datetime, timezone
from typing import Any

import httpx
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from config.auth_settings import SESSION_COOKIE_NAME
from database.connection import Database
from services.rbac_service import RBACService
from sso_auth.client import OAuth2Client
from sso_auth.config import SSOConfig
from sso_auth.pkce import now_ms
from sso_auth.schemas import SessionData, SessionUser
from sso_auth.token import encode_session


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Each request pops the next queued item. An exception instance is raised
    instead of returned. When the queue is empty a 500 is returned.
    """

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, json={"error": "No more mock responses"})

        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)


def token_response(access_token: str = "access-1", refresh_token: str | None = "refresh-1",
                   expires_in: int = 3600) -> httpx.Response:
    body = {"access_token": access_token, "token_type": "Bearer", "expires_in": expires_in}
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    return httpx.Response(200, json=body)


def userinfo_response(email: str = "jane@university.edu", username: str = "jane") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "sso-42",
            "email": email,
            "username": username,
            "userType": "ADMIN",
            "employmentStatus": "STAFF",
            "employmentType": "REGULAR",
            "level": 7,
            "department": "Registrar",
        },
    )


@pytest.fixture
def sso_config() -> SSOConfig:
    return SSOConfig(
        client_id="assignwork",
        client_secret="secret",
        authorize_url="https://sso.test/oauth/authorize",
        token_url="https://sso.test/oauth/token",
        userinfo_url="https://sso.test/oauth/userinfo",
        jwks_url="https://sso.test/.well-known/jwks.json",
        logout_url="https://sso.test/oauth/logout",
        extend_session_url="https://sso.test/api/extend-session",
        callback_url="https://assignwork.test/api/auth/callback",
    )


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def oauth_client(sso_config, transport) -> OAuth2Client:
    return OAuth2Client(config=sso_config, http_client=httpx.AsyncClient(transport=transport))


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(url="sqlite://", engine=engine)
    db.create_db_and_tables()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def rbac(session) -> RBACService:
    return RBACService(session)


def make_session_data(user_id: str, email: str = "jane@university.edu", username: str = "jane",
                      expires_in_ms: int = 3_600_000, **overrides: Any) -> SessionData:
    now = datetime.now(timezone.utc)
    values = {
        "user": SessionUser(id=user_id, email=email, username=username, created_at=now, updated_at=now),
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "expires_at": now_ms() + expires_in_ms,
        "created_at": now_ms(),
    }
    values.update(overrides)
    return SessionData(**values)


def session_cookie(user_id: str, **kwargs: Any) -> dict[str, str]:
    return {SESSION_COOKIE_NAME: encode_session(make_session_data(user_id, **kwargs))}
