"""
Configuration management for FireSign.

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
    See .env.example for available options.
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

    # Google sign-in (credential picker)
    web_client_id: str = Field(
        default="",
        description="Server (web) OAuth client ID issued for the Firebase project"
    )
    google_oauth_client_secret: str = Field(
        default="",
        description="Secret of the web OAuth client"
    )
    google_oauth_redirect_uri: str = Field(
        default="http://127.0.0.1:8765/callback",
        description="Loopback redirect URI (must match Google Cloud Console)"
    )

    # Firebase Authentication
    firebase_api_key: str = Field(
        default="",
        description="Firebase Web API key"
    )
    identity_toolkit_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Base URL of the Identity Toolkit REST API"
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout applied to provider and backend requests"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.python_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.python_env == "production"

    @property
    def uses_google_sign_in(self) -> bool:
        """Check if Google sign-in and Firebase are both configured."""
        return bool(self.web_client_id and self.firebase_api_key)

    def validate_sign_in_config(self) -> None:
        """
        Validate the settings needed for a sign-in round-trip.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if not self.web_client_id:
            errors.append("WEB_CLIENT_ID is required for Google sign-in.")
        if not self.google_oauth_client_secret:
            errors.append("GOOGLE_OAUTH_CLIENT_SECRET is required for Google sign-in.")
        if not self.firebase_api_key:
            errors.append("FIREBASE_API_KEY is required for Firebase Authentication.")

        if errors:
            raise ValueError("Sign-in configuration errors:\n- " + "\n- ".join(errors))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure we only load settings once.
    Use this function throughout the application to access settings.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from firesign.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.web_client_id)
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
