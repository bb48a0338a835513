"""Central configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class KucoinConfig(BaseSettings):
    api_key: str = Field(default="", alias="KUCOIN_API_KEY")
    api_secret: str = Field(default="", alias="KUCOIN_API_SECRET")
    api_passphrase: str = Field(default="", alias="KUCOIN_API_PASSPHRASE")
    spot_rest_url: str = Field(default="https://api.kucoin.com", alias="KUCOIN_SPOT_REST_URL")
    futures_rest_url: str = Field(
        default="https://api-futures.kucoin.com", alias="KUCOIN_FUTURES_REST_URL"
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret and self.api_passphrase)


class TuningConfig(BaseSettings):
    ws_ack_timeout: float = Field(default=10.0, alias="WS_ACK_TIMEOUT")
    ws_open_timeout: float = Field(default=10.0, alias="WS_OPEN_TIMEOUT")
    ws_max_message_size: int = Field(default=10 * 1024 * 1024, alias="WS_MAX_MESSAGE_SIZE")
    ws_stats_interval: int = Field(default=60, alias="WS_STATS_INTERVAL")
    rest_timeout: float = Field(default=30.0, alias="REST_TIMEOUT")


class LoggingConfig(BaseSettings):
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")


class AppConfig:
    """Aggregated application configuration."""

    def __init__(self) -> None:
        self.kucoin = KucoinConfig()
        self.tuning = TuningConfig()
        self.logging = LoggingConfig()


def get_config() -> AppConfig:
    """Create and return the application configuration."""
    return AppConfig()
