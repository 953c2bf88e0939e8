"""
Configuration management for Routine Calendar.

Uses Pydantic Settings for type-safe environment variable loading.
Configured via .env file in project root.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via .env file or environment variables.
    """

    # Python & Application
    python_env: Literal["development", "production"] = Field(
        default="development",
        description="Application environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=3000,
        description="API server port"
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload in development"
    )
    base_url: str = Field(
        default="http://localhost:3000",
        description="Public base URL of this service, without trailing slash"
    )
    api_key: str = Field(
        default="",
        description="Shared secret expected in the X-API-Key header"
    )
    cors_allow_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser (JSON list)"
    )

    # Calendar
    calendar_id: str = Field(
        default="primary",
        description="Google Calendar ID targeted by all operations"
    )
    default_timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone attached to created events"
    )
    google_list_max_pages: int = Field(
        default=10,
        ge=1,
        description="Maximum pages fetched when listing events before the listing counts as truncated"
    )

    # Google OAuth Configuration
    google_oauth_client_id: str = Field(
        default="",
        description="Google OAuth 2.0 client ID"
    )
    google_oauth_client_secret: str = Field(
        default="",
        description="Google OAuth 2.0 client secret"
    )
    google_oauth_redirect_uri: str = Field(
        default="",
        description="OAuth redirect URI (defaults to {base_url}/oauth2callback)"
    )

    # Routines
    routines_url: str = Field(
        default="",
        description="URL of the routines document (.yaml, .yml or .json)"
    )
    routines_lookahead_days: int = Field(
        default=14,
        ge=0,
        le=366,
        description="Days ahead to materialize routine instances"
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for outbound HTTP requests"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def oauth_redirect_uri(self) -> str:
        """Redirect URI registered with Google."""
        if self.google_oauth_redirect_uri:
            return self.google_oauth_redirect_uri
        return f"{self.base_url.rstrip('/')}/oauth2callback"

    @property
    def uses_google_oauth(self) -> bool:
        """Check if Google OAuth is configured."""
        return bool(self.google_oauth_client_id and self.google_oauth_client_secret)

    @property
    def requires_api_key(self) -> bool:
        """Check if protected routes must present an API key."""
        return bool(self.api_key)

    def validate_production_config(self) -> None:
        """
        Validate configuration for production environment.

        Raises:
            ValueError: If required production settings are missing or invalid
        """
        if not self.is_production:
            return

        errors = []

        if not self.api_key:
            errors.append("API_KEY is required in production.")

        if not self.uses_google_oauth:
            errors.append(
                "GOOGLE_OAUTH_CLIENT_ID and GOOGLE_OAUTH_CLIENT_SECRET are required in production."
            )

        if self.base_url.startswith("http://localhost"):
            errors.append("BASE_URL must point at the public deployment in production.")

        if errors:
            raise ValueError("Production configuration errors:\n- " + "\n- ".join(errors))


def configure_logging(level: str) -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from routine_calendar.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.routines_url)
    """
    return Settings()
