"""
Authentication module for Routine Calendar.

Provides OAuth 2.0 authentication for Google Calendar access and a
per-user token store.
"""

from routine_calendar.auth.google_oauth import (
    GoogleOAuthFlow,
    GoogleUserInfo,
    OAuthError,
    OAuthTokens,
)
from routine_calendar.auth.token_storage import StoredToken, TokenStore

__all__ = [
    # OAuth flow
    "GoogleOAuthFlow",
    "GoogleUserInfo",
    "OAuthError",
    "OAuthTokens",
    # Token storage
    "StoredToken",
    "TokenStore",
]
