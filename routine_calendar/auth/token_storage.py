"""
Token storage and retrieval for OAuth tokens.

Tokens are kept per user identity and handed out explicitly to callers;
an expired access token is refreshed on read.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from routine_calendar.auth.google_oauth import (
    GoogleOAuthFlow,
    GoogleUserInfo,
    OAuthTokens,
)

logger = logging.getLogger(__name__)


@dataclass
class StoredToken:
    """OAuth tokens saved for one user."""

    user_id: str
    tokens: OAuthTokens
    email: Optional[str] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = datetime.now(timezone.utc)


class TokenStore:
    """
    In-memory mapping from user ID to OAuth tokens.

    State does not survive a restart; users re-run the OAuth flow.
    """

    def __init__(self):
        self._tokens: dict[str, StoredToken] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, user_id: str) -> Optional[StoredToken]:
        """
        Get a user's stored OAuth token.

        Returns:
            StoredToken if found, None otherwise
        """
        return self._tokens.get(user_id)

    def save(
        self,
        user_id: str,
        tokens: OAuthTokens,
        user_info: Optional[GoogleUserInfo] = None,
    ) -> StoredToken:
        """
        Save or update a user's OAuth tokens.

        A refresh token already on file is kept when the new response does
        not include one (Google only sends it on first consent).
        """
        existing = self._tokens.get(user_id)
        if existing and not tokens.refresh_token:
            tokens.refresh_token = existing.tokens.refresh_token

        email = user_info.email if user_info else (existing.email if existing else None)
        stored = StoredToken(user_id=user_id, tokens=tokens, email=email)
        self._tokens[user_id] = stored
        logger.info(f"Saved OAuth tokens for user {user_id}")
        return stored

    def delete(self, user_id: str) -> bool:
        """
        Forget a user's tokens.

        Returns:
            True if tokens were removed, False if none were stored
        """
        removed = self._tokens.pop(user_id, None)
        self._locks.pop(user_id, None)
        if removed:
            logger.info(f"Deleted OAuth tokens for user {user_id}")
        return removed is not None

    async def get_valid_token(
        self,
        user_id: str,
        flow: GoogleOAuthFlow,
    ) -> Optional[OAuthTokens]:
        """
        Get a non-expired access token for a user, refreshing if needed.

        Args:
            user_id: The user's ID
            flow: OAuth flow used for refreshing

        Returns:
            Valid tokens, or None if the user never connected or the token
            expired without a refresh token

        Raises:
            OAuthError: If the refresh request fails
        """
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            stored = self._tokens.get(user_id)
            if stored is None:
                return None

            if not stored.tokens.is_expired():
                return stored.tokens

            if not stored.tokens.refresh_token:
                logger.warning(f"Token for user {user_id} expired and has no refresh token")
                return None

            logger.info(f"Refreshing expired access token for user {user_id}")
            refreshed = await flow.refresh_token(stored.tokens.refresh_token)
            return self.save(user_id, refreshed).tokens
