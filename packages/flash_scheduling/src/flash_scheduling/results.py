"""Validation results returned across the public trigger contract."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FailureReason(str, Enum):
    """Typed reason attached to every failed validation."""

    CONFIGURATION_MISSING = "ConfigurationMissing"
    MALFORMED_EXPRESSION = "MalformedExpression"
    UNKNOWN_TIMEZONE = "UnknownTimezone"
    OUT_OF_RANGE = "OutOfRange"
    NEVER_FIRES = "NeverFires"
    STALE_IDENTITY = "StaleIdentity"
    UNKNOWN_TRIGGER_TYPE = "UnknownTriggerType"
    INVALID_VALUE = "InvalidValue"


class ValidationResult(BaseModel):
    """
    Outcome of a validation call.

    A result without a reason is a success. Failures always carry a
    `FailureReason` and a human readable message.

    Examples:
        >>> ValidationResult.success().is_success
        True
        >>> result = ValidationResult.failure(
        ...     FailureReason.OUT_OF_RANGE, "Interval must be greater than 0"
        ... )
        >>> result.reason
        <FailureReason.OUT_OF_RANGE: 'OutOfRange'>
    """

    model_config = ConfigDict(frozen=True)

    reason: FailureReason | None = None
    message: str = ""

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> ValidationResult:
        return cls(reason=reason, message=message)

    @property
    def is_success(self) -> bool:
        return self.reason is None

    @property
    def is_failure(self) -> bool:
        return self.reason is not None

    def __bool__(self) -> bool:
        return self.is_success

    def __str__(self) -> str:
        if self.is_success:
            return "Success"
        return f"{self.reason.value}: {self.message}"
