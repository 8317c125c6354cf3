"""
Settings for the Flash scheduling core.
"""

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .schemas import OnceMissedPolicy, TimezonePolicy


class SchedulingSettings(BaseSettings):
    """
    Defaults applied when the built-in trigger types are registered.

    Every field can be overridden through a `FLASH_SCHEDULING_` prefixed
    environment variable or the `.env` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASH_SCHEDULING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Timezones ---
    # Lenient while computing, strict while admitting configuration.
    CALCULATION_TIMEZONE_POLICY: TimezonePolicy = TimezonePolicy.FALLBACK_TO_UTC
    VALIDATION_TIMEZONE_POLICY: TimezonePolicy = TimezonePolicy.STRICT

    # --- Trigger behaviour ---
    CRON_MAX_ITERATIONS: int = 1000
    ONCE_MISSED_POLICY: OnceMissedPolicy = OnceMissedPolicy.FIRE_IMMEDIATELY

    # --- Logging ---
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("CRON_MAX_ITERATIONS")
    @classmethod
    def validate_iterations(cls, v: int) -> int:
        if v <= 0:
            msg = "CRON_MAX_ITERATIONS must be positive"
            raise ValueError(msg)
        return v


# Singleton instance for default registry construction
scheduling_settings = SchedulingSettings()
