# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Configuration management for the relay service.

Uses Pydantic Settings for environment variable and .env file support.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Settings for the relay service.

    Settings are loaded from environment variables with CARESIGNAL_RELAY_
    prefix, or from a .env file in the working directory.

    Example environment variables:
        CARESIGNAL_RELAY_TELEGRAM_BOT_TOKEN=123456:ABC...
        CARESIGNAL_RELAY_TELEGRAM_CHAT_ID=987654321
        CARESIGNAL_RELAY_PORT=3001
    """

    model_config = SettingsConfigDict(
        env_prefix="CARESIGNAL_RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Telegram
    telegram_bot_token: str = Field(
        default="",
        description="Bot token from BotFather"
    )
    telegram_chat_id: str = Field(
        default="",
        description="Chat that receives caregiver alerts"
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for outbound Telegram requests"
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )
    port: int = Field(
        default=3001,
        description="Port to listen on"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def telegram_configured(self) -> bool:
        """Whether both Telegram credentials are set."""
        return bool(self.telegram_bot_token and self.telegram_chat_id)


# Global settings instance (lazy loaded)
_settings: Optional[RelaySettings] = None


def get_settings() -> RelaySettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = RelaySettings()
    return _settings
