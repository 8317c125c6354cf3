"""Interval - Fires every N wall-clock minutes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import IntervalTriggerConfig

from .base import TriggerType, as_utc


class IntervalTriggerType(TriggerType[IntervalTriggerConfig]):
    """
    Trigger type that fires at fixed minute intervals.

    The interval is added on the wall clock of the configured zone, so across
    a DST change the elapsed real time can be an hour longer or shorter than
    the configured spacing. That is the intended behaviour.

    Examples:
        >>> # Every 30 minutes, counted from the last execution
        >>> interval = IntervalTriggerType()
        >>> interval.calculate_next_execution(
        ...     {"IntervalMinutes": 30},
        ...     last_execution=datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),
        ... )
        datetime.datetime(2024, 6, 1, 10, 30, tzinfo=datetime.timezone.utc)
    """

    id = 2
    name = "Interval"
    requires_schedule = True
    is_immediate = False
    config_model = IntervalTriggerConfig

    def _next_execution(
        self,
        config: IntervalTriggerConfig,
        last_execution: datetime | None,
        now: datetime,
    ) -> datetime | None:
        if config.interval_minutes <= 0:
            return None

        zone = self.resolve_zone(config.time_zone_id, strict=False)
        if zone.is_failure:
            return None

        # Reference: last run, else configured start, else now
        if last_execution is not None:
            reference = last_execution
        elif config.start_time is not None:
            reference = as_utc(config.start_time)
        else:
            reference = now

        try:
            local = reference.astimezone(zone.zone)
            next_local = local + timedelta(minutes=config.interval_minutes)
            return next_local.astimezone(timezone.utc)
        except OverflowError:
            return None

    def _validate(
        self, config: IntervalTriggerConfig, now: datetime
    ) -> ValidationResult:
        if config.interval_minutes <= 0:
            return ValidationResult.failure(
                FailureReason.OUT_OF_RANGE,
                "Interval must be greater than 0 minutes. "
                f"Provided value: {config.interval_minutes}",
            )

        zone = self.resolve_zone(config.time_zone_id, strict=True)
        if zone.is_failure:
            return zone.result

        return ValidationResult.success()
