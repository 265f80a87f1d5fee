"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROOFPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Proof engine
    host: str = Field(default="localhost", description="Proof engine host")
    port: int = Field(default=8080, description="Proof engine port")
    ws_path: str = Field(default="/ws", description="WebSocket endpoint path")
    request_timeout: float = Field(default=10.0, gt=0, description="Seconds to wait for a reply")

    # Countdown
    countdown_minutes: float = Field(default=2, gt=0, description="Duration of a timed game")
    tick_ms: int = Field(default=1000, gt=0, description="Countdown tick granularity in ms")

    # Logging
    log_level: str = Field(default="WARNING", description="Root logging level")

    @property
    def server_uri(self) -> str:
        """WebSocket URI of the proof engine."""
        return f"ws://{self.host}:{self.port}{self.ws_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
