from __future__ import annotations

from .results import FailureReason, ValidationResult


class SchedulingError(Exception):
    """Base class for all Flash Scheduling exceptions."""

    reason: FailureReason = FailureReason.CONFIGURATION_MISSING

    def __init__(self, message: str, reason: FailureReason | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason
        self.message = message

    def to_result(self) -> ValidationResult:
        """Converts the error into a failed ValidationResult."""
        return ValidationResult.failure(self.reason, self.message)


class StaleIdentityError(SchedulingError, ValueError):
    """Raised when a Trigger or Schedule is built with a broken identity."""

    reason = FailureReason.STALE_IDENTITY


class InvalidTriggerConfigurationError(SchedulingError, ValueError):
    """Raised when a configuration payload cannot be read as its typed model."""


class InvalidTimezoneError(SchedulingError, ValueError):
    """Raised when a timezone identifier does not resolve."""

    reason = FailureReason.UNKNOWN_TIMEZONE


class UnknownTriggerTypeError(SchedulingError, LookupError):
    """Raised when a type tag is not registered. Treated as a deployment fault."""

    reason = FailureReason.UNKNOWN_TRIGGER_TYPE


class MalformedCronExpressionError(SchedulingError, ValueError):
    """Raised when a cron expression fails to parse."""

    reason = FailureReason.MALFORMED_EXPRESSION
