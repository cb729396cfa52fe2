# flightdrill/settings.py
"""Runtime defaults for the CLI and drill sessions, overridable via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Session and CLI settings (``FLIGHTDRILL_*`` env vars or a ``.env`` file)."""

    # Logging
    LOG_LEVEL: str = "WARNING"

    # Flight
    CADET_COUNT: int = 13
    ELEMENTS: int = 3
    CADENCE: str = "quick_time"

    # Clock
    FRAME_MS: float = 16.0
    MAX_DRAIN_BEATS: int = 400

    model_config = SettingsConfigDict(env_prefix="FLIGHTDRILL_", env_file=".env", extra="ignore")


settings = Settings()
