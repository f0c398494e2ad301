"""Telegram bot configuration from environment variables."""

import logging
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class BotConfig(BaseSettings):
    """Bot configuration loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file (if env_file is set)

    IMPORTANT: Instantiate AFTER environment variables are loaded.
    This is handled by the lazy loader below.
    """

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields in .env file
    )

    telegram_bot_token: str

    # Default department channel and news channel; DB settings take precedence
    channel_id: str = ""
    news_channel_id: str = ""
    admin_log_chat_id: str = ""

    # Owner telegram id (only the owner manages admins and settings)
    owner_id: int | None = None

    link_ttl_hours: int = 24
    claim_session_ttl_minutes: int = 10

    sweep_interval_minutes: int = 15
    invite_cleanup_interval_minutes: int = 60
    night_window_start_hour: int = 0
    night_window_end_hour: int = 5
    # Fixed offset of the organization's local time (not DST-aware): night window, invite expiry
    org_utc_offset_hours: int = 3

    webhook_url: str = ""

    def validate(self) -> None:
        """Validate required configuration is present."""
        if not self.telegram_bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")
        if self.link_ttl_hours <= 0:
            raise ValueError("LINK_TTL_HOURS must be positive")
        if not (0 <= self.night_window_start_hour < 24 and 0 <= self.night_window_end_hour <= 24):
            raise ValueError("Night window hours must be within 0..24")


# Lazy loader to ensure environment is loaded before instantiation
_bot_config_instance: Optional[BotConfig] = None


def get_bot_config() -> BotConfig:
    """Get or create bot config instance."""
    global _bot_config_instance
    if _bot_config_instance is None:
        _bot_config_instance = BotConfig()
        _bot_config_instance.validate()
    return _bot_config_instance


class _BotConfigProxy:
    """Proxy to provide attribute access while lazy-loading the config."""

    def __getattr__(self, name: str):
        return getattr(get_bot_config(), name)


bot_config = _BotConfigProxy()

__all__ = ["BotConfig", "bot_config", "get_bot_config"]
