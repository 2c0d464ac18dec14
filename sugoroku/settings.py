"""
Central engine configuration using pydantic-settings.

Timing knobs for the animation-paced step queue and the HTTP server are read
from the environment (prefix ``SUGOROKU_``) or a local ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Delays (milliseconds) attached to scheduled steps.

    Environment variables (prefix: SUGOROKU_):
        SUGOROKU_DICE_ROLL_MS      - Dice spin before the value is revealed (default: 1000)
        SUGOROKU_MOVE_STEP_MS      - Token animation per node (default: 400)
        SUGOROKU_MOVE_BASE_MS      - Fixed tail added to every move (default: 200)
        SUGOROKU_CPU_THINK_MS      - CPU pause before acting (default: 800)
        SUGOROKU_CPU_ROUTE_MS      - CPU pause before choosing a route (default: 500)
        SUGOROKU_RESULT_DISPLAY_MS - Auto-resolved result display time (default: 1200)
        SUGOROKU_SKIP_TURN_MS      - Pause when a paralyzed player is skipped (default: 800)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="SUGOROKU_",
    )

    dice_roll_ms: int = Field(default=1000, ge=0)
    move_step_ms: int = Field(default=400, ge=0)
    move_base_ms: int = Field(default=200, ge=0)
    cpu_think_ms: int = Field(default=800, ge=0)
    cpu_route_ms: int = Field(default=500, ge=0)
    result_display_ms: int = Field(default=1200, ge=0)
    skip_turn_ms: int = Field(default=800, ge=0)

    def move_ms(self, steps: int) -> int:
        """Animation time for walking ``steps`` nodes."""
        return self.move_step_ms * steps + self.move_base_ms


class ServerSettings(BaseSettings):
    """
    Configuration for the HTTP server.

    Environment variables:
        SUGOROKU_SERVER_HOST - Bind host (default: 127.0.0.1)
        SUGOROKU_SERVER_PORT - Bind port (default: 8000)
        SUGOROKU_TIME_SCALE  - Multiplier applied to every step delay (default: 1.0)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="SUGOROKU_",
    )

    server_host: str = "127.0.0.1"
    server_port: int = Field(default=8000, gt=0)
    time_scale: float = Field(default=1.0, ge=0)


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()


@lru_cache
def get_server_settings() -> ServerSettings:
    """Return cached server settings instance."""
    return ServerSettings()
