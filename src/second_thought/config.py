"""Application configuration and settings management."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from second_thought.services.decision_store import STORAGE_KEY


class Settings(BaseSettings):
    """Project-level settings loaded from environment variables/.env."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    telegram_bot_token: Optional[SecretStr] = Field(None, alias="TELEGRAM_BOT_TOKEN")
    owner_chat_id: Optional[int] = Field(None, alias="OWNER_CHAT_ID")
    force_ipv4: bool = Field(False, alias="FORCE_IPV4")

    data_dir: Path = Field(Path("data"), alias="DATA_DIR")
    store_key: str = Field(STORAGE_KEY, alias="STORE_KEY")
    timezone: str = Field("UTC", alias="TIMEZONE")

    tick_interval_seconds: float = Field(1.0, gt=0, alias="TICK_INTERVAL_SECONDS")
    alarm_sound_path: Optional[Path] = Field(None, alias="ALARM_SOUND_PATH")
    log_level: str = Field("INFO", alias="LOG_LEVEL")


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return cached settings instance."""

    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings()
    return _SETTINGS


__all__ = ["Settings", "get_settings"]
