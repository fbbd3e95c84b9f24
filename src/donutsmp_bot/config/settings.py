"""Application settings using Pydantic v2.

This module provides centralized configuration management for the DonutSMP
Telegram bot using Pydantic v2 settings with environment variable support.

Example:
    Basic usage::

        from donutsmp_bot.config.settings import get_settings

        settings = get_settings()
        print(settings.donutsmp_api_base_url)

Attributes:
    Settings: Main settings class with all configuration options.
    get_settings: Factory function to get cached settings instance.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _normalize_url(value: str, field_name: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"{field_name} must start with http:// or https://")
    return value.rstrip("/")


class Settings(BaseSettings):
    """Application settings with validation.

    Manages the Telegram credentials, webhook configuration, the upstream
    DonutSMP API connection, the team roster location and the online
    status poster. All settings can be configured via environment variables
    or a .env file.

    Attributes:
        telegram_bot_token: Bot API token from @BotFather.
        donutsmp_api_key: Static bearer token for the DonutSMP API.
        donutsmp_api_base_url: Base URL of the DonutSMP API.
        api_timeout_seconds: Timeout for interactive API calls.
        poll_timeout_seconds: Timeout for online status lookups.
        webhook_host: Public hostname for webhook (must be HTTPS in production).
        webhook_path: Path for the webhook endpoint.
        webhook_secret: Secret token for webhook verification.
        webhook_drop_pending_updates: Drop pending updates on webhook setup.
        webhook_max_retries: Retries for SetWebhook under flood control.
        webhook_retry_buffer_seconds: Buffer added to Telegram's retry_after.
        server_host: Host to bind the server.
        server_port: Port to bind the server.
        environment: Application environment (development/staging/production).
        log_level: Logging level.
        debug: Enable debug mode.
        log_to_file: Whether to write logs to file.
        log_dir: Directory for log files.
        log_max_size_mb: Max log file size before rotation.
        log_backup_count: Number of backup log files to keep.
        online_chat_id: Chat receiving the periodic team status post.
        online_interval_minutes: Minutes between two status posts.
        team_store_path: Location of the team roster JSON file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Telegram Bot Configuration
    telegram_bot_token: SecretStr = Field(
        ...,
        description="Telegram Bot API token from @BotFather",
    )

    # DonutSMP API Configuration
    donutsmp_api_key: SecretStr = Field(
        ...,
        description="Bearer token for the DonutSMP API",
    )
    donutsmp_api_base_url: str = Field(
        default="https://api.donutsmp.net",
        description="Base URL of the DonutSMP API",
    )
    api_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Timeout for interactive API calls",
    )
    poll_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout for online status lookups",
    )

    # Webhook Configuration
    webhook_host: str = Field(
        ...,
        description="Public hostname for webhook (e.g., https://example.com)",
    )
    webhook_path: str = Field(
        default="/webhook",
        description="Path for the webhook endpoint",
    )
    webhook_secret: SecretStr = Field(
        ...,
        description="Secret token for webhook verification",
    )
    webhook_drop_pending_updates: bool = Field(
        default=True,
        description="Drop pending updates on webhook setup",
    )
    webhook_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum retries for webhook setup on flood control",
    )
    webhook_retry_buffer_seconds: float = Field(
        default=0.5,
        ge=0.0,
        le=5.0,
        description="Buffer time in seconds added to Telegram's retry_after",
    )

    # Server Configuration
    server_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server",
    )
    server_port: int = Field(
        default=8002,
        ge=1,
        le=65535,
        description="Port to bind the server",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging Configuration
    log_to_file: bool = Field(
        default=True,
        description="Whether to write logs to file",
    )
    log_dir: str = Field(
        default="./logs",
        description="Directory for log files",
    )
    log_max_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size in megabytes before rotation",
    )
    log_backup_count: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of backup log files to keep",
    )

    # Team Roster Configuration
    online_chat_id: int | None = Field(
        default=None,
        description="Chat that receives the periodic team online status post",
    )
    online_interval_minutes: int = Field(
        default=10,
        ge=1,
        le=1440,
        description="Minutes between two online status posts",
    )
    team_store_path: str = Field(
        default="team_data.json",
        description="Path of the team roster JSON file",
    )

    @field_validator("webhook_host")
    @classmethod
    def validate_webhook_host(cls, v: str) -> str:
        """Validate and normalize the webhook host URL.

        Args:
            v: The webhook host value to validate.

        Returns:
            The normalized webhook host without trailing slash.

        Raises:
            ValueError: If the webhook host doesn't start with http:// or https://.
        """
        return _normalize_url(v, "webhook_host")

    @field_validator("donutsmp_api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate and normalize the DonutSMP API base URL."""
        return _normalize_url(v, "donutsmp_api_base_url")

    @field_validator("online_chat_id", mode="before")
    @classmethod
    def validate_online_chat_id(cls, v: object) -> object:
        """Treat an empty ONLINE_CHAT_ID as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def webhook_url(self) -> str:
        """Get the full webhook URL.

        Returns:
            The complete webhook URL (e.g., "https://example.com/webhook").
        """
        return f"{self.webhook_host}{self.webhook_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Cached Settings instance loaded from environment.
    """
    return Settings()
