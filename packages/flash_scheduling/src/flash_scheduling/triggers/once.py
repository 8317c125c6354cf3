"""Once - Fires exactly one time."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import OnceMissedPolicy, OnceTriggerConfig, TimezonePolicy

from .base import TriggerType


class OnceTriggerType(TriggerType[OnceTriggerConfig]):
    """
    Trigger type that fires at most once.

    Once any execution has been recorded the trigger is spent and every
    later calculation returns None. A StartTime that has already passed
    fires immediately by default (`OnceMissedPolicy.FIRE_IMMEDIATELY`);
    `OnceMissedPolicy.SKIP` drops it instead.

    Examples:
        >>> once = OnceTriggerType()
        >>> run_at = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
        >>> once.calculate_next_execution(
        ...     {"StartTime": run_at},
        ...     now=datetime(2025, 12, 31, tzinfo=timezone.utc),
        ... )
        datetime.datetime(2026, 1, 1, 9, 0, tzinfo=datetime.timezone.utc)
        >>> once.calculate_next_execution({"StartTime": run_at}, last_execution=run_at)

    Args:
        missed_policy: What to do when StartTime is already in the past.
    """

    id = 3
    name = "Once"
    requires_schedule = True
    is_immediate = False
    config_model = OnceTriggerConfig

    def __init__(
        self,
        calculation_timezone_policy: TimezonePolicy = TimezonePolicy.FALLBACK_TO_UTC,
        validation_timezone_policy: TimezonePolicy = TimezonePolicy.STRICT,
        missed_policy: OnceMissedPolicy = OnceMissedPolicy.FIRE_IMMEDIATELY,
    ):
        super().__init__(calculation_timezone_policy, validation_timezone_policy)
        self.missed_policy = missed_policy

    def _next_execution(
        self,
        config: OnceTriggerConfig,
        last_execution: datetime | None,
        now: datetime,
    ) -> datetime | None:
        # Already ran: spent for good
        if last_execution is not None:
            return None

        start = self._start_utc(config)
        if start is None:
            return None

        if start < now:
            if self.missed_policy is OnceMissedPolicy.SKIP:
                return None
            return now

        return start

    def _start_utc(self, config: OnceTriggerConfig) -> datetime | None:
        start = config.start_time
        if start.tzinfo is not None:
            return start.astimezone(timezone.utc)

        # Naive start times are wall-clock times in the configured zone
        zone = self.resolve_zone(config.time_zone_id, strict=False)
        if zone.is_failure:
            return None
        return start.replace(tzinfo=zone.zone).astimezone(timezone.utc)

    def _validate(self, config: OnceTriggerConfig, now: datetime) -> ValidationResult:
        start = config.start_time
        if start.tzinfo is None or start.utcoffset() != timedelta(0):
            return ValidationResult.failure(
                FailureReason.INVALID_VALUE,
                "Start time must be a UTC timestamp in the 'StartTime' "
                f"configuration key. Provided value: {start.isoformat()}",
            )

        zone = self.resolve_zone(config.time_zone_id, strict=True)
        if zone.is_failure:
            return zone.result

        return ValidationResult.success()
