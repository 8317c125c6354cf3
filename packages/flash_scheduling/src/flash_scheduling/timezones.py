"""Timezone resolution with an explicit fallback policy."""

from __future__ import annotations

import zoneinfo
from dataclasses import dataclass
from datetime import timezone, tzinfo

from .exceptions import InvalidTimezoneError
from .logging import get_logger
from .results import FailureReason, ValidationResult
from .schemas import TimezonePolicy

logger = get_logger(__name__)


@dataclass(frozen=True)
class TimezoneResolution:
    """
    Outcome of resolving a TimeZoneId.

    Attributes:
        zone: The resolved zone, or None on a strict failure.
        result: Success, or the UNKNOWN_TIMEZONE failure that was hit.
        fell_back: True when an unknown id was replaced by UTC.
    """

    zone: tzinfo | None
    result: ValidationResult
    fell_back: bool = False

    @property
    def is_failure(self) -> bool:
        return self.zone is None

    def unwrap(self) -> tzinfo:
        """Return the zone or raise InvalidTimezoneError."""
        if self.zone is None:
            raise InvalidTimezoneError(self.result.message)
        return self.zone


def _lookup(time_zone_id: str) -> tzinfo:
    if time_zone_id.upper() in ("UTC", "Z", "ETC/UTC"):
        return timezone.utc
    return zoneinfo.ZoneInfo(time_zone_id)


def resolve_timezone(
    time_zone_id: str | None,
    policy: TimezonePolicy = TimezonePolicy.STRICT,
) -> TimezoneResolution:
    """
    Resolve an IANA timezone identifier.

    A missing or blank id resolves to UTC. An unknown id either fails
    (`STRICT`) or resolves to UTC with `fell_back=True` (`FALLBACK_TO_UTC`).

    Examples:
        >>> resolve_timezone("Europe/London").zone
        zoneinfo.ZoneInfo(key='Europe/London')
        >>> resolve_timezone("Mars/Olympus", TimezonePolicy.FALLBACK_TO_UTC).fell_back
        True
    """
    if time_zone_id is None or not time_zone_id.strip():
        return TimezoneResolution(zone=timezone.utc, result=ValidationResult.success())

    try:
        zone = _lookup(time_zone_id.strip())
    except (zoneinfo.ZoneInfoNotFoundError, ValueError, OSError) as e:
        message = (
            f"Invalid timezone identifier: '{time_zone_id}'. Use standard "
            "timezone IDs like 'UTC', 'America/New_York', or 'Europe/London'"
        )
        failure = ValidationResult.failure(FailureReason.UNKNOWN_TIMEZONE, message)
        if policy is TimezonePolicy.FALLBACK_TO_UTC:
            logger.warning(
                "Unknown timezone %r, falling back to UTC: %s", time_zone_id, e
            )
            return TimezoneResolution(zone=timezone.utc, result=failure, fell_back=True)
        return TimezoneResolution(zone=None, result=failure)

    return TimezoneResolution(zone=zone, result=ValidationResult.success())
