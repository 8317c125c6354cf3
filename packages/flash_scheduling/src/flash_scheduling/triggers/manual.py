"""Manual - Never fires on its own."""

from __future__ import annotations

from datetime import datetime

from flash_scheduling.results import ValidationResult
from flash_scheduling.schemas import ManualTriggerConfig

from .base import ConfigurationInput, TriggerType


class ManualTriggerType(TriggerType[ManualTriggerConfig]):
    """
    Trigger type for processes started only by an explicit invocation.

    It never produces a next execution. Its configuration is informational:
    an optional description, the role allowed to fire it, and whether
    overlapping runs are allowed.
    """

    id = 4
    name = "Manual"
    requires_schedule = False
    is_immediate = True
    config_model = ManualTriggerConfig

    def calculate_next_execution(
        self,
        configuration: ConfigurationInput,
        last_execution: datetime | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        return None

    def _next_execution(
        self,
        config: ManualTriggerConfig,
        last_execution: datetime | None,
        now: datetime,
    ) -> datetime | None:
        return None

    def _validate(self, config: ManualTriggerConfig, now: datetime) -> ValidationResult:
        # Field types are enforced while parsing; nothing else is required
        return ValidationResult.success()
