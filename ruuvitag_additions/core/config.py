"""
RuuviTag Additions - Configuration
All settings loaded from environment variables
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_LOG_LEVEL_ALIASES = {"TRACE": "DEBUG", "WARN": "WARNING", "OFF": "CRITICAL"}


class Settings(BaseSettings):
    """Bridge settings loaded from environment variables."""

    log_level: str

    # MQTT
    mqtt_broker_url: str
    mqtt_username: str
    mqtt_password: str
    mqtt_client_id: str = ""  # Empty lets the broker assign one
    mqtt_keepalive: int = 60

    # Topics
    mqtt_listen_topic: str
    mqtt_hass_discovery_topic: str

    # Consume loop
    poll_timeout_seconds: float = 1.0

    @field_validator("mqtt_hass_discovery_topic")
    @classmethod
    def strip_topic_wildcards(cls, value: str) -> str:
        """Discovery prefix without trailing /, + or #."""
        return value.rstrip("/+#")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Map to a logging level name; TRACE and OFF are accepted too."""
        level = value.strip().upper()
        level = _LOG_LEVEL_ALIASES.get(level, level)
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    class Config:
        env_file = ".env"  # Fallback for local development
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
