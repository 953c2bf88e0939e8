"""
Credential construction for Google Calendar API.

Builds google-auth credentials from OAuth tokens handed in by the caller.
Nothing here holds on to tokens between calls.
"""

import logging
from typing import Optional

from google.oauth2.credentials import Credentials

from routine_calendar.config import get_settings
from routine_calendar.integrations.google_calendar.exceptions import GoogleCalendarAuthError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Required scopes for calendar operations
CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
]


def get_oauth_credentials(
    access_token: str,
    refresh_token: Optional[str] = None,
    token_uri: str = GOOGLE_TOKEN_URI,
    scopes: Optional[list[str]] = None,
) -> Credentials:
    """
    Create credentials from OAuth tokens.

    Args:
        access_token: Valid access token
        refresh_token: Refresh token for automatic renewal (optional)
        token_uri: Google's token endpoint
        scopes: OAuth scopes (optional)

    Returns:
        Google credentials object

    Raises:
        GoogleCalendarAuthError: If no access token is supplied
    """
    if not access_token:
        raise GoogleCalendarAuthError("An access token is required to call Google Calendar")

    settings = get_settings()

    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        token_uri=token_uri,
        client_id=settings.google_oauth_client_id,
        client_secret=settings.google_oauth_client_secret,
        scopes=scopes or CALENDAR_SCOPES,
    )


def get_oauth_credentials_from_dict(credentials_dict: dict) -> Credentials:
    """
    Create credentials from a dictionary.

    Args:
        credentials_dict: Dict with keys: token, refresh_token, token_uri, scopes

    Returns:
        Google credentials object
    """
    if "token" not in credentials_dict:
        raise GoogleCalendarAuthError("Credentials dict is missing 'token'")

    return get_oauth_credentials(
        access_token=credentials_dict["token"],
        refresh_token=credentials_dict.get("refresh_token"),
        token_uri=credentials_dict.get("token_uri", GOOGLE_TOKEN_URI),
        scopes=credentials_dict.get("scopes"),
    )
