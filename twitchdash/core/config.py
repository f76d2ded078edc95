"""Application configuration using Pydantic Settings"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Path the provider redirects back to; must match the authorize request exactly
TWITCH_CALLBACK_PATH = "/api/twitch/auth"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Twitch OAuth
    twitch_client_id: str = Field(..., min_length=1, description="Twitch OAuth Client ID")
    twitch_client_secret: str = Field(..., min_length=1, description="Twitch OAuth Client Secret")
    twitch_timeout: float = Field(
        default=10.0, description="Deadline in seconds for each Twitch request"
    )

    # Session cookie (JWT)
    jwt_secret_key: str = Field(..., min_length=1, description="Secret key for JWT session signing")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expire_days: int = Field(default=30, description="Session lifetime in days")
    jwt_audience: str | None = Field(
        default=None, description="Expected aud claim (e.g. \"authenticated\" for Supabase)"
    )
    session_cookie_name: str = Field(default="auth_token", description="Session cookie name")

    # Database
    database_url: str = Field(..., min_length=1, description="PostgreSQL database URL")

    # Server URLs
    app_url: str = Field(
        default="http://localhost:8000",
        description="Public base URL, used to build the OAuth redirect URI",
    )

    # Environment
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def twitch_redirect_uri(self) -> str:
        """Redirect URI registered with Twitch for the linking flow"""
        return f"{self.app_url}{TWITCH_CALLBACK_PATH}"

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS allowed origins"""
        return [self.app_url]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()  # type: ignore[call-arg]
