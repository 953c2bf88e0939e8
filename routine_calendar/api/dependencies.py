"""
FastAPI dependency injection providers.

Provides the token store, OAuth flow, API key check, caller identity and a
calendar repository bound to the caller's credentials.
"""

import hmac
import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException

from routine_calendar.auth import GoogleOAuthFlow, OAuthError, TokenStore
from routine_calendar.config import Settings, get_settings
from routine_calendar.integrations.google_calendar import (
    GoogleCalendarRepository,
    get_oauth_credentials_from_dict,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default_user"

# Initialized at startup
_token_store: Optional[TokenStore] = None
_oauth_flow: Optional[GoogleOAuthFlow] = None


def init_services(settings: Optional[Settings] = None) -> None:
    """Initialize the token store and OAuth flow at application startup."""
    global _token_store, _oauth_flow
    if _token_store is None:
        _token_store = TokenStore()
    _oauth_flow = GoogleOAuthFlow(settings or get_settings())
    logger.info("Token store and OAuth flow initialized")


def get_token_store() -> TokenStore:
    """
    Dependency injection for the token store.

    Raises:
        HTTPException: If services were not initialized
    """
    if _token_store is None:
        logger.error("Token store not initialized")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - token store not initialized",
        )
    return _token_store


def get_oauth_flow() -> GoogleOAuthFlow:
    """Dependency injection for the OAuth flow."""
    if _oauth_flow is None:
        logger.error("OAuth flow not initialized")
        raise HTTPException(
            status_code=503,
            detail="Service temporarily unavailable - OAuth not initialized",
        )
    return _oauth_flow


def require_api_key(
    x_api_key: Optional[str] = Header(None, description="Shared API key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Reject requests without the configured API key.

    The check is disabled when API_KEY is not set.

    Raises:
        HTTPException: 401 if the key is missing or wrong
    """
    if not settings.requires_api_key:
        return
    if not x_api_key or not hmac.compare_digest(x_api_key, settings.api_key):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def get_user_id(
    x_user_id: Optional[str] = Header(None, description="User ID"),
) -> str:
    """
    Resolve the calling user.

    Priority: header value > default
    """
    return x_user_id or DEFAULT_USER_ID


async def get_calendar_repository(
    user_id: str = Depends(get_user_id),
    token_store: TokenStore = Depends(get_token_store),
    flow: GoogleOAuthFlow = Depends(get_oauth_flow),
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[GoogleCalendarRepository]:
    """
    Yield a repository authorized as the calling user.

    Raises:
        HTTPException: 401 if the user has not connected a calendar or the
            token can no longer be refreshed
    """
    try:
        tokens = await token_store.get_valid_token(user_id, flow)
    except OAuthError as e:
        logger.warning(f"Token refresh failed for user {user_id}: {e}")
        raise HTTPException(
            status_code=401,
            detail="Calendar authorization expired. Please authorize via /auth/google/login",
        )

    if tokens is None:
        raise HTTPException(
            status_code=401,
            detail="Calendar not connected. Please authorize via /auth/google/login",
        )

    credentials = get_oauth_credentials_from_dict(tokens.as_credentials_dict())
    repository = GoogleCalendarRepository(
        credentials,
        max_pages=settings.google_list_max_pages,
    )
    try:
        yield repository
    finally:
        await repository.close()
