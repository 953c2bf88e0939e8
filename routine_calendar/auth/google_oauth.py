"""
Google OAuth 2.0 implementation for calendar access.

Implements the OAuth 2.0 authorization code flow:
1. Generate authorization URL → user redirected to Google
2. User grants permission → Google redirects back with code
3. Exchange code for tokens → access_token + refresh_token
4. Use access_token to call Calendar API
5. Refresh access_token when expired using refresh_token
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import httpx

from routine_calendar.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Google OAuth endpoints
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/userinfo.email",
]

# Refresh slightly before Google reports the token as expired
EXPIRY_SKEW = timedelta(seconds=60)


class OAuthError(Exception):
    """Token exchange, refresh or user info request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class OAuthTokens:
    """OAuth token response from Google."""

    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    token_type: str = "Bearer"
    scope: str = ""
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def expiry(self) -> datetime:
        """Calculate token expiry time."""
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the access token needs a refresh."""
        now = now or datetime.now(timezone.utc)
        return now + EXPIRY_SKEW >= self.expiry

    def as_credentials_dict(self) -> dict:
        """Shape expected by get_oauth_credentials_from_dict."""
        return {
            "token": self.access_token,
            "refresh_token": self.refresh_token,
            "scopes": self.scope.split() if self.scope else None,
        }


@dataclass
class GoogleUserInfo:
    """User info from Google OAuth."""

    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleOAuthFlow:
    """
    Manages the Google OAuth 2.0 flow.

    Usage:
        flow = GoogleOAuthFlow()

        # Step 1: Get authorization URL
        auth_url = flow.get_authorization_url(state="random_state")
        # Redirect user to auth_url

        # Step 2: Handle callback with authorization code
        tokens = await flow.exchange_code(code)

        # Step 3: Refresh token when expired
        new_tokens = await flow.refresh_token(tokens.refresh_token)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = settings or get_settings()
        self.client_id = settings.google_oauth_client_id
        self.client_secret = settings.google_oauth_client_secret
        self.redirect_uri = settings.oauth_redirect_uri
        self.timeout = settings.http_timeout_seconds
        self._http_client = http_client

        if not self.client_id or not self.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_OAUTH_CLIENT_ID and "
                "GOOGLE_OAUTH_CLIENT_SECRET in environment."
            )

    def get_authorization_url(self, state: str) -> str:
        """
        Generate the Google OAuth authorization URL.

        Args:
            state: Random string to prevent CSRF attacks

        Returns:
            URL to redirect user to for authorization
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(OAUTH_SCOPES),
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Always show consent screen (ensures refresh token)
            "include_granted_scopes": "true",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise OAuthError(
                f"Google OAuth request to {url} failed with {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise OAuthError(f"Google OAuth request to {url} failed: {e}") from e

    async def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            code: Authorization code from OAuth callback

        Returns:
            OAuthTokens with access_token and refresh_token

        Raises:
            OAuthError: If token exchange fails
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }

        token_data = await self._request("POST", GOOGLE_TOKEN_URL, data=data)

        logger.info("Successfully exchanged authorization code for tokens")

        return OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            expires_in=int(token_data.get("expires_in", 3600)),
            token_type=token_data.get("token_type", "Bearer"),
            scope=token_data.get("scope", ""),
        )

    async def refresh_token(self, refresh_token: str) -> OAuthTokens:
        """
        Refresh an expired access token.

        Args:
            refresh_token: The refresh token from initial authorization

        Returns:
            New OAuthTokens with fresh access_token

        Raises:
            OAuthError: If refresh fails
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        token_data = await self._request("POST", GOOGLE_TOKEN_URL, data=data)

        logger.info("Successfully refreshed access token")

        return OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token", refresh_token),
            expires_in=int(token_data.get("expires_in", 3600)),
            token_type=token_data.get("token_type", "Bearer"),
            scope=token_data.get("scope", ""),
        )

    async def get_user_info(self, access_token: str) -> GoogleUserInfo:
        """
        Get user info from Google using access token.

        Raises:
            OAuthError: If request fails
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        user_data = await self._request("GET", GOOGLE_USERINFO_URL, headers=headers)

        return GoogleUserInfo(
            email=user_data["email"],
            name=user_data.get("name"),
            picture=user_data.get("picture"),
        )
