"""
Authentication API routes for Google OAuth.

Handles the OAuth 2.0 authorization code flow:
1. /auth/google/login - Start OAuth flow (redirect to Google)
2. /oauth2callback - Handle OAuth callback (exchange code for tokens)
3. /auth/status - Check if user has connected calendar
4. /auth/logout - Disconnect calendar
"""

import logging
import secrets
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from routine_calendar.api.dependencies import (
    get_oauth_flow,
    get_token_store,
    get_user_id,
    require_api_key,
)
from routine_calendar.auth import GoogleOAuthFlow, OAuthError, TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

STATE_TTL_SECONDS = 600


# Response models
class AuthStatusResponse(BaseModel):
    """Response for auth status check."""
    connected: bool
    email: Optional[str] = None
    provider: str = "google"


class AuthLoginResponse(BaseModel):
    """Response with OAuth authorization URL."""
    authorization_url: str
    state: str


class AuthCallbackResponse(BaseModel):
    """Response after successful OAuth callback."""
    success: bool
    email: Optional[str]
    message: str


# In-memory state storage: state -> (user_id, issued_at)
_oauth_states: dict[str, tuple[str, float]] = {}


def _generate_state(user_id: str) -> str:
    """Generate a random state token and store the user_id mapping."""
    _purge_expired_states()
    state = secrets.token_urlsafe(32)
    _oauth_states[state] = (user_id, time.monotonic())
    return state


def _validate_state(state: str) -> Optional[str]:
    """Validate state token and return user_id if valid."""
    entry = _oauth_states.pop(state, None)
    if entry is None:
        return None
    user_id, issued_at = entry
    if time.monotonic() - issued_at > STATE_TTL_SECONDS:
        return None
    return user_id


def _purge_expired_states() -> None:
    now = time.monotonic()
    expired = [s for s, (_, issued) in _oauth_states.items() if now - issued > STATE_TTL_SECONDS]
    for state in expired:
        del _oauth_states[state]


@router.get("/auth/google/login", response_model=AuthLoginResponse)
async def google_login(
    user_id: Optional[str] = Query(None, description="User ID to associate with OAuth tokens"),
    redirect: bool = Query(False, description="Redirect to Google instead of returning the URL"),
    flow: GoogleOAuthFlow = Depends(get_oauth_flow),
):
    """
    Start the Google OAuth flow.

    Returns the authorization URL that the client should redirect to, or
    redirects directly when ``redirect=true``. The state parameter maps the
    callback to the user.
    """
    user_id = user_id or get_user_id(None)
    state = _generate_state(user_id)
    auth_url = flow.get_authorization_url(state)

    logger.info(f"Generated OAuth URL for user {user_id}")

    if redirect:
        return RedirectResponse(auth_url, status_code=302)

    return AuthLoginResponse(
        authorization_url=auth_url,
        state=state,
    )


@router.get("/oauth2callback", response_model=AuthCallbackResponse)
async def google_callback(
    code: Optional[str] = Query(None, description="Authorization code from Google"),
    state: Optional[str] = Query(None, description="State token for CSRF protection"),
    error: Optional[str] = Query(None, description="Error from Google OAuth"),
    flow: GoogleOAuthFlow = Depends(get_oauth_flow),
    token_store: TokenStore = Depends(get_token_store),
) -> AuthCallbackResponse:
    """
    Handle the Google OAuth callback.

    Google redirects here after user grants/denies permission.
    On success, exchanges the authorization code for tokens and stores them.

    Raises:
        HTTPException: If state is invalid or token exchange fails
    """
    if error:
        logger.warning(f"OAuth error: {error}")
        raise HTTPException(
            status_code=400,
            detail=f"OAuth authorization failed: {error}"
        )

    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")

    user_id = _validate_state(state)
    if not user_id:
        logger.warning("Invalid OAuth state token")
        raise HTTPException(
            status_code=400,
            detail="Invalid or expired state token. Please restart the OAuth flow."
        )

    try:
        tokens = await flow.exchange_code(code)
    except OAuthError as e:
        logger.error(f"OAuth code exchange failed for user {user_id}: {e}")
        raise HTTPException(
            status_code=502,
            detail=f"Failed to complete OAuth flow: {e.message}"
        )

    user_info = None
    try:
        user_info = await flow.get_user_info(tokens.access_token)
    except OAuthError as e:
        logger.warning(f"Could not fetch Google user info for {user_id}: {e}")

    token_store.save(user_id, tokens, user_info)

    email = user_info.email if user_info else None
    logger.info(f"Stored OAuth tokens for user {user_id} ({email or 'unknown email'})")

    return AuthCallbackResponse(
        success=True,
        email=email,
        message="Successfully connected Google Calendar",
    )


@router.get(
    "/auth/status",
    response_model=AuthStatusResponse,
    dependencies=[Depends(require_api_key)],
)
async def auth_status(
    user_id: str = Depends(get_user_id),
    token_store: TokenStore = Depends(get_token_store),
) -> AuthStatusResponse:
    """Check if a user has connected their Google Calendar."""
    stored = token_store.get(user_id)

    if stored:
        return AuthStatusResponse(connected=True, email=stored.email)
    return AuthStatusResponse(connected=False)


@router.post("/auth/logout", dependencies=[Depends(require_api_key)])
async def logout(
    user_id: str = Depends(get_user_id),
    token_store: TokenStore = Depends(get_token_store),
) -> dict:
    """
    Disconnect a user's Google Calendar.

    This removes the stored OAuth tokens. The user will need to
    re-authorize to use calendar features again.
    """
    if token_store.delete(user_id):
        logger.info(f"User {user_id} disconnected Google Calendar")
        return {"message": "Successfully disconnected Google Calendar"}
    return {"message": "No connected calendar found"}
