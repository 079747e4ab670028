"""Tests for the SSO OAuth2 client.

Outbound HTTP goes through MockTransport, so every test can assert exactly
which requests were made.
"""

import json
from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from conftest import token_response, userinfo_response
from sso_auth.client import OAuth2Client
from sso_auth.pkce import generate_code_challenge


class TestInitiateAuth:
    def test_builds_authorize_url_with_pkce(self, oauth_client) -> None:
        result = oauth_client.initiate_auth()

        url = urlparse(result.authorization_url)
        params = {k: v[0] for k, v in parse_qs(url.query).items()}

        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://sso.test/oauth/authorize"
        assert params["client_id"] == "assignwork"
        assert params["redirect_uri"] == "https://assignwork.test/api/auth/callback"
        assert params["response_type"] == "code"
        assert params["state"] == result.state
        assert params["code_challenge"] == generate_code_challenge(result.code_verifier)
        assert params["code_challenge_method"] == "S256"
        assert "scope" not in params

    def test_includes_scope_when_given(self, oauth_client) -> None:
        result = oauth_client.initiate_auth(scope="openid profile")
        params = parse_qs(urlparse(result.authorization_url).query)
        assert params["scope"] == ["openid profile"]

    def test_state_and_verifier_are_independent(self, oauth_client) -> None:
        result = oauth_client.initiate_auth()
        assert result.state != result.code_verifier

    def test_unconfigured_provider_raises(self, sso_config) -> None:
        client = OAuth2Client(config=replace(sso_config, authorize_url=""))
        with pytest.raises(ValueError):
            client.initiate_auth()


class TestHandleCallback:
    @pytest.mark.asyncio
    async def test_state_mismatch_makes_no_requests(self, oauth_client, transport) -> None:
        result = await oauth_client.handle_callback(
            code="abc", state="attacker", code_verifier="v", expected_state="expected"
        )

        assert result.success is False
        assert result.error == "invalid_state"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_expected_state_is_rejected(self, oauth_client, transport) -> None:
        result = await oauth_client.handle_callback(code="abc", state="", code_verifier="v", expected_state="")
        assert result.error == "invalid_state"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_success_exchanges_code_then_fetches_userinfo(self, oauth_client, transport) -> None:
        transport.queue(token_response(), userinfo_response())

        result = await oauth_client.handle_callback(
            code="abc", state="s1", code_verifier="verifier-1", expected_state="s1"
        )

        assert result.success is True
        assert result.tokens.access_token == "access-1"
        assert result.user_info.email == "jane@university.edu"

        token_request, userinfo_request = transport.requests
        assert str(token_request.url) == "https://sso.test/oauth/token"
        body = json.loads(token_request.content)
        assert body == {
            "grant_type": "authorization_code",
            "code": "abc",
            "client_id": "assignwork",
            "redirect_uri": "https://assignwork.test/api/auth/callback",
            "code_verifier": "verifier-1",
        }
        assert userinfo_request.headers["Authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_token_exchange_failure(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(400, json={"error": "invalid_grant"}))

        result = await oauth_client.handle_callback(
            code="abc", state="s1", code_verifier="v", expected_state="s1"
        )

        assert result.success is False
        assert result.error == "token_exchange_failed"
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_userinfo_failure(self, oauth_client, transport) -> None:
        transport.queue(token_response(), httpx.Response(401, json={"error": "invalid_token"}))

        result = await oauth_client.handle_callback(
            code="abc", state="s1", code_verifier="v", expected_state="s1"
        )

        assert result.success is False
        assert result.error == "userinfo_fetch_failed"


class TestTokenCalls:
    @pytest.mark.asyncio
    async def test_network_error_returns_none(self, oauth_client, transport) -> None:
        transport.queue(httpx.ConnectError("connection refused"))
        assert await oauth_client.exchange_code_for_token("abc", "v") is None

    @pytest.mark.asyncio
    async def test_malformed_token_body_returns_none(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(200, json={"token_type": "Bearer"}))
        assert await oauth_client.exchange_code_for_token("abc", "v") is None

    @pytest.mark.asyncio
    async def test_refresh_sends_refresh_grant(self, oauth_client, transport) -> None:
        transport.queue(token_response(access_token="access-2", refresh_token="refresh-2", expires_in=900))

        tokens = await oauth_client.refresh_access_token("refresh-1")

        assert tokens.access_token == "access-2"
        assert tokens.expires_in == 900
        assert json.loads(transport.requests[0].content) == {
            "grant_type": "refresh_token",
            "refresh_token": "refresh-1",
            "client_id": "assignwork",
        }

    @pytest.mark.asyncio
    async def test_refresh_rejected_returns_none(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(401, json={"error": "invalid_grant"}))
        assert await oauth_client.refresh_access_token("stale") is None

    @pytest.mark.asyncio
    async def test_userinfo_keeps_provider_attributes_on_the_identity(self, oauth_client, transport) -> None:
        transport.queue(userinfo_response())
        user = await oauth_client.fetch_user_info("access-1")
        assert user.username == "jane"
        assert user.model_extra["department"] == "Registrar"


class TestBestEffortCalls:
    @pytest.mark.asyncio
    async def test_logout_sends_bearer_token(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(200, json={}))

        assert await oauth_client.logout("access-1") is True
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://sso.test/oauth/logout"
        assert request.headers["Authorization"] == "Bearer access-1"

    @pytest.mark.asyncio
    async def test_logout_tolerates_provider_errors(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(503), httpx.ReadTimeout("timed out"))

        assert await oauth_client.logout("access-1") is False
        assert await oauth_client.logout("access-1") is False

    @pytest.mark.asyncio
    async def test_extend_session_returns_provider_body(self, oauth_client, transport) -> None:
        transport.queue(httpx.Response(200, json={"maxSessionReached": True}))
        assert await oauth_client.extend_session("access-1") == {"maxSessionReached": True}

    @pytest.mark.asyncio
    async def test_extend_session_network_error(self, oauth_client, transport) -> None:
        transport.queue(httpx.ConnectError("down"))
        assert await oauth_client.extend_session("access-1") is None
