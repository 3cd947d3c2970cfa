from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime config.

    - Loaded from environment variables (`SKETCHROOM_*`)
    - Also reads `.env` if present (via pydantic-settings + python-dotenv)
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SKETCHROOM_", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Stroke history retention per room.
    # "unbounded" keeps everything for the process lifetime; "ring" keeps the newest N.
    history_policy: Literal["unbounded", "ring"] = "unbounded"
    history_max_strokes: int = Field(default=50_000, gt=0)

    # Per-member send bound during fan-out; a slower member misses that event.
    send_timeout_s: float = Field(default=5.0, gt=0)

    # /rooms/{id}/snapshot.png canvas size
    snapshot_width: int = Field(default=1280, gt=0)
    snapshot_height: int = Field(default=720, gt=0)

    # Debugging
    log_level: str = "INFO"
    debug_log_msgs: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
