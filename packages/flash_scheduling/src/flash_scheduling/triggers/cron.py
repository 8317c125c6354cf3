"""Cron - Fires based on cron expressions."""

from __future__ import annotations

import bisect
import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import ClassVar

from flash_scheduling.exceptions import MalformedCronExpressionError
from flash_scheduling.logging import get_logger
from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import CronTriggerConfig, TimezonePolicy

from .base import TriggerType

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 1000


class CronField:
    """Parses and matches a single cron field."""

    def __init__(
        self,
        expr: str,
        min_val: int,
        max_val: int,
        aliases: dict[str, int] | None = None,
    ):
        self.expr = expr
        self.min_val = min_val
        self.max_val = max_val
        self.aliases = aliases if aliases else {}
        # Vixie cron treats any field starting with '*' as unrestricted
        self.is_wildcard = expr[:1] in ("*", "?")
        self.values = self._parse(expr)
        self._sorted = sorted(self.values)

    def _parse(self, expr: str) -> set[int]:
        """Parses a cron sub-expression (e.g., '*/15', '1,5', 'MON-FRI')."""
        values: set[int] = set()
        for part in expr.upper().split(","):
            values.update(self._parse_part(part))
        return values

    def _parse_part(self, part: str) -> set[int]:
        if "/" in part:
            range_part, _, step_part = part.partition("/")
            step = self._to_int(step_part)
            if step <= 0:
                msg = f"Step must be positive in '{part}'"
                raise ValueError(msg)
            if range_part in ("*", "?"):
                start, end = self.min_val, self.max_val
            elif "-" in range_part:
                start, end = self._parse_range(range_part)
            else:
                start, end = self._to_int(range_part), self.max_val
            return set(range(start, end + 1, step))

        if part in ("*", "?"):
            return set(range(self.min_val, self.max_val + 1))

        if "-" in part:
            start, end = self._parse_range(part)
            return set(range(start, end + 1))

        return {self._to_int(part)}

    def _parse_range(self, part: str) -> tuple[int, int]:
        start_part, _, end_part = part.partition("-")
        start, end = self._to_int(start_part), self._to_int(end_part)
        if start > end:
            msg = f"Invalid range '{part}'"
            raise ValueError(msg)
        return start, end

    def _to_int(self, token: str) -> int:
        if token in self.aliases:
            return self.aliases[token]
        if not token.isdigit():
            msg = f"Invalid value '{token}'"
            raise ValueError(msg)
        value = int(token)
        if value < self.min_val or value > self.max_val:
            msg = f"Value {value} out of range [{self.min_val}, {self.max_val}]"
            raise ValueError(msg)
        return value

    def matches(self, value: int) -> bool:
        return value in self.values

    def next_value(self, current: int) -> int | None:
        """Finds the next valid value greater than current."""
        idx = bisect.bisect_right(self._sorted, current)
        if idx < len(self._sorted):
            return self._sorted[idx]
        return None

    def first_value(self) -> int:
        """Returns the smallest valid value."""
        return self._sorted[0]


class DayOfWeekField(CronField):
    """Day-of-week field where both 0 and 7 mean Sunday."""

    def _parse(self, expr: str) -> set[int]:
        return {0 if v == 7 else v for v in super()._parse(expr)}


class CronExpression:
    """
    A parsed cron expression.

    Format: [second] minute hour day month day_of_week

    Examples:
        >>> # Standard 5-field: 9:00 AM on weekdays
        >>> CronExpression("0 9 * * MON-FRI")

        >>> # Extended 6-field: every 10 seconds
        >>> CronExpression("*/10 * * * * *")

        >>> # Named descriptor
        >>> CronExpression("@daily")

    Raises:
        MalformedCronExpressionError: If the expression cannot be parsed.
    """

    DAY_ALIASES: ClassVar[dict[str, int]] = {
        "SUN": 0,
        "MON": 1,
        "TUE": 2,
        "WED": 3,
        "THU": 4,
        "FRI": 5,
        "SAT": 6,
    }
    MONTH_ALIASES: ClassVar[dict[str, int]] = {
        "JAN": 1,
        "FEB": 2,
        "MAR": 3,
        "APR": 4,
        "MAY": 5,
        "JUN": 6,
        "JUL": 7,
        "AUG": 8,
        "SEP": 9,
        "OCT": 10,
        "NOV": 11,
        "DEC": 12,
    }
    DESCRIPTORS: ClassVar[dict[str, str]] = {
        "@YEARLY": "0 0 0 1 1 *",
        "@ANNUALLY": "0 0 0 1 1 *",
        "@MONTHLY": "0 0 0 1 * *",
        "@WEEKLY": "0 0 0 * * 0",
        "@DAILY": "0 0 0 * * *",
        "@MIDNIGHT": "0 0 0 * * *",
        "@HOURLY": "0 0 * * * *",
        "@EVERY_MINUTE": "0 * * * * *",
        "@EVERY_SECOND": "* * * * * *",
    }

    def __init__(self, expression: str):
        self.expression = expression
        second, minute, hour, day, month, dow = self._split(expression)
        try:
            self.second = CronField(second, 0, 59)
            self.minute = CronField(minute, 0, 59)
            self.hour = CronField(hour, 0, 23)
            self.day = CronField(day, 1, 31)
            self.month = CronField(month, 1, 12, self.MONTH_ALIASES)
            self.day_of_week = DayOfWeekField(dow, 0, 7, self.DAY_ALIASES)
        except ValueError as e:
            msg = f"Invalid cron expression '{expression}': {e}"
            raise MalformedCronExpressionError(msg) from e

    @classmethod
    def _split(cls, expression: str) -> list[str]:
        if not isinstance(expression, str) or not expression.strip():
            msg = "Cron expression cannot be empty"
            raise MalformedCronExpressionError(msg)

        text = expression.strip()
        if text.startswith("@"):
            fields = cls.DESCRIPTORS.get(text.upper())
            if fields is None:
                msg = f"Unknown cron descriptor '{text}'"
                raise MalformedCronExpressionError(msg)
            return fields.split()

        parts = text.split()
        if len(parts) == 5:
            # Standard: seconds default to 0
            return ["0", *parts]
        if len(parts) == 6:
            return parts
        msg = (
            f"Invalid cron expression: '{expression}'. "
            f"Expected 5 or 6 fields, got {len(parts)}."
        )
        raise MalformedCronExpressionError(msg)

    def next_occurrence(
        self,
        after: datetime,
        tz: tzinfo = timezone.utc,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> datetime | None:
        """
        Finds the first matching instant strictly after `after`.

        Matching happens on the wall clock of `tz`; the result is in UTC.
        Returns None if nothing matches within `max_iterations` field jumps.
        """
        reference = after.astimezone(timezone.utc)

        try:
            candidate = reference.astimezone(tz).replace(microsecond=0)
            candidate += timedelta(seconds=1)

            for _ in range(max_iterations):
                if not self.month.matches(candidate.month):
                    candidate = self._advance_month(candidate)
                    continue

                if not self._day_matches(candidate):
                    candidate = self._advance_day(candidate)
                    continue

                if not self.hour.matches(candidate.hour):
                    candidate = self._advance_hour(candidate)
                    continue

                if not self.minute.matches(candidate.minute):
                    candidate = self._advance_minute(candidate)
                    continue

                if not self.second.matches(candidate.second):
                    candidate = self._advance_second(candidate)
                    continue

                result = candidate.astimezone(timezone.utc)
                if result > reference:
                    return result

                # Wall time repeated by a DST fall-back: try its second pass
                repeated = candidate.replace(fold=1).astimezone(timezone.utc)
                if repeated > reference:
                    return repeated

                candidate = self._advance_second(candidate)
        except (OverflowError, ValueError):
            # Ran past datetime.max
            return None

        return None

    def _day_matches(self, dt: datetime) -> bool:
        # Python 0=Mon -> Cron 1=Mon
        dom = self.day.matches(dt.day)
        dow = self.day_of_week.matches((dt.weekday() + 1) % 7)
        if self.day.is_wildcard or self.day_of_week.is_wildcard:
            return dom and dow
        return dom or dow

    def _advance_month(self, dt: datetime) -> datetime:
        """Jump to the start of the next valid month."""
        next_val = self.month.next_value(dt.month)
        if next_val is not None:
            year = dt.year
        else:
            next_val = self.month.first_value()
            year = dt.year + 1

        return dt.replace(year=year, month=next_val, day=1, hour=0, minute=0, second=0)

    def _advance_day(self, dt: datetime) -> datetime:
        """Jump to the start of the next candidate day."""
        if self.day_of_week.is_wildcard:
            days_in_month = calendar.monthrange(dt.year, dt.month)[1]
            next_val = self.day.next_value(dt.day)
            if next_val is None or next_val > days_in_month:
                return self._advance_month(dt)
            return dt.replace(day=next_val, hour=0, minute=0, second=0)

        tomorrow = dt.date() + timedelta(days=1)
        return dt.replace(
            year=tomorrow.year,
            month=tomorrow.month,
            day=tomorrow.day,
            hour=0,
            minute=0,
            second=0,
        )

    def _advance_hour(self, dt: datetime) -> datetime:
        next_val = self.hour.next_value(dt.hour)
        if next_val is None:
            return self._advance_day(dt)
        return dt.replace(hour=next_val, minute=0, second=0)

    def _advance_minute(self, dt: datetime) -> datetime:
        next_val = self.minute.next_value(dt.minute)
        if next_val is None:
            return self._advance_hour(dt)
        return dt.replace(minute=next_val, second=0)

    def _advance_second(self, dt: datetime) -> datetime:
        next_val = self.second.next_value(dt.second)
        if next_val is None:
            return self._advance_minute(dt)
        return dt.replace(second=next_val)

    def __repr__(self) -> str:
        return f"CronExpression({self.expression!r})"


class CronTriggerType(TriggerType[CronTriggerConfig]):
    """
    Trigger type that fires on a cron expression in a configured timezone.

    The reference instant is the later of the last execution and now, so a
    trigger is never scheduled at or before an instant it already fired at.
    The search runs on the zone's wall clock, so "0 9 * * *" fires at 9:00
    local time on both sides of a DST change.

    Examples:
        >>> cron = CronTriggerType()
        >>> cron.calculate_next_execution(
        ...     {"CronExpression": "0 9 * * *"},
        ...     now=datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc),
        ... )
        datetime.datetime(2024, 6, 1, 9, 0, tzinfo=datetime.timezone.utc)

    Args:
        max_iterations: Search budget for a single occurrence lookup.
    """

    id = 1
    name = "Cron"
    requires_schedule = True
    is_immediate = False
    config_model = CronTriggerConfig

    def __init__(
        self,
        calculation_timezone_policy: TimezonePolicy = TimezonePolicy.FALLBACK_TO_UTC,
        validation_timezone_policy: TimezonePolicy = TimezonePolicy.STRICT,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        super().__init__(calculation_timezone_policy, validation_timezone_policy)
        self.max_iterations = max_iterations

    def _next_execution(
        self,
        config: CronTriggerConfig,
        last_execution: datetime | None,
        now: datetime,
    ) -> datetime | None:
        try:
            expression = CronExpression(config.cron_expression)
        except MalformedCronExpressionError as e:
            logger.debug("Cannot calculate Cron trigger: %s", e)
            return None

        zone = self.resolve_zone(config.time_zone_id, strict=False)
        if zone.is_failure:
            return None

        reference = now
        if last_execution is not None and last_execution > reference:
            reference = last_execution

        return expression.next_occurrence(reference, zone.zone, self.max_iterations)

    def _validate(self, config: CronTriggerConfig, now: datetime) -> ValidationResult:
        if not config.cron_expression.strip():
            return ValidationResult.failure(
                FailureReason.CONFIGURATION_MISSING,
                "Cron expression is required and must be provided in the "
                "'CronExpression' configuration key",
            )

        try:
            expression = CronExpression(config.cron_expression)
        except MalformedCronExpressionError as e:
            return e.to_result()

        zone = self.resolve_zone(config.time_zone_id, strict=True)
        if zone.is_failure:
            return zone.result

        if expression.next_occurrence(now, zone.zone, self.max_iterations) is None:
            return ValidationResult.failure(
                FailureReason.NEVER_FIRES,
                f"Cron expression '{config.cron_expression}' will never execute. "
                "Verify the expression is not in the past or misconfigured",
            )

        return ValidationResult.success()
