"""Tests for the Google OAuth flow."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from routine_calendar.auth.google_oauth import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuthFlow,
    OAuthError,
    OAuthTokens,
)
from routine_calendar.config import Settings


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        google_oauth_client_id="client-id",
        google_oauth_client_secret="client-secret",
        base_url="https://calendar.example.com",
    )


def make_flow(settings, handler) -> GoogleOAuthFlow:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GoogleOAuthFlow(settings, http_client=client)


class TestOAuthTokens:
    """Tests for OAuthTokens expiry handling."""

    def test_fresh_token_is_valid(self):
        tokens = OAuthTokens(access_token="a", refresh_token="r", expires_in=3600)

        assert not tokens.is_expired()

    def test_token_expires_slightly_early(self):
        issued = datetime(2024, 1, 1, tzinfo=timezone.utc)
        tokens = OAuthTokens(access_token="a", refresh_token="r", expires_in=3600, issued_at=issued)

        assert tokens.is_expired(now=issued + timedelta(minutes=59, seconds=30))
        assert not tokens.is_expired(now=issued + timedelta(minutes=30))

    def test_credentials_dict(self):
        tokens = OAuthTokens(
            access_token="a",
            refresh_token="r",
            expires_in=3600,
            scope="https://www.googleapis.com/auth/calendar.events openid",
        )

        assert tokens.as_credentials_dict() == {
            "token": "a",
            "refresh_token": "r",
            "scopes": ["https://www.googleapis.com/auth/calendar.events", "openid"],
        }


class TestAuthorizationUrl:
    """Tests for get_authorization_url."""

    def test_requests_offline_calendar_access(self, settings):
        flow = GoogleOAuthFlow(settings)

        url = flow.get_authorization_url("state-123")

        params = parse_qs(urlparse(url).query)
        assert params["client_id"] == ["client-id"]
        assert params["redirect_uri"] == ["https://calendar.example.com/oauth2callback"]
        assert params["access_type"] == ["offline"]
        assert params["state"] == ["state-123"]
        assert "calendar.events" in params["scope"][0]


class TestTokenRequests:
    """Tests for token exchange, refresh and user info."""

    @pytest.mark.asyncio
    async def test_exchange_code(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == GOOGLE_TOKEN_URL
            form = parse_qs(request.content.decode())
            assert form["grant_type"] == ["authorization_code"]
            assert form["code"] == ["auth-code"]
            return httpx.Response(200, json={
                "access_token": "access-1",
                "refresh_token": "refresh-1",
                "expires_in": 3599,
                "scope": "https://www.googleapis.com/auth/calendar.events",
            })

        tokens = await make_flow(settings, handler).exchange_code("auth-code")

        assert tokens.access_token == "access-1"
        assert tokens.refresh_token == "refresh-1"
        assert tokens.expires_in == 3599

    @pytest.mark.asyncio
    async def test_refresh_keeps_refresh_token(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"access_token": "access-2", "expires_in": 3600})

        tokens = await make_flow(settings, handler).refresh_token("refresh-1")

        assert tokens.access_token == "access-2"
        assert tokens.refresh_token == "refresh-1"

    @pytest.mark.asyncio
    async def test_rejected_request_raises(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        with pytest.raises(OAuthError) as exc_info:
            await make_flow(settings, handler).refresh_token("revoked")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(OAuthError):
            await make_flow(settings, handler).exchange_code("auth-code")

    @pytest.mark.asyncio
    async def test_user_info(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == GOOGLE_USERINFO_URL
            assert request.headers["Authorization"] == "Bearer access-1"
            return httpx.Response(200, json={"email": "me@example.com", "name": "Me"})

        info = await make_flow(settings, handler).get_user_info("access-1")

        assert info.email == "me@example.com"
        assert info.name == "Me"
