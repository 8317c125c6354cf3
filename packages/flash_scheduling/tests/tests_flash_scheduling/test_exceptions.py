import pytest
from flash_scheduling.exceptions import (
    InvalidTimezoneError,
    InvalidTriggerConfigurationError,
    MalformedCronExpressionError,
    SchedulingError,
    StaleIdentityError,
    UnknownTriggerTypeError,
)
from flash_scheduling.results import FailureReason


@pytest.mark.parametrize(
    "exc_class, reason, builtin",
    [
        (StaleIdentityError, FailureReason.STALE_IDENTITY, ValueError),
        (InvalidTimezoneError, FailureReason.UNKNOWN_TIMEZONE, ValueError),
        (MalformedCronExpressionError, FailureReason.MALFORMED_EXPRESSION, ValueError),
        (UnknownTriggerTypeError, FailureReason.UNKNOWN_TRIGGER_TYPE, LookupError),
    ],
)
def test_exceptions_carry_reason(exc_class, reason, builtin):
    error = exc_class("boom")

    assert isinstance(error, SchedulingError)
    assert isinstance(error, builtin)
    assert error.reason is reason
    assert error.message == "boom"


def test_reason_can_be_overridden_per_instance():
    error = InvalidTriggerConfigurationError("bad", FailureReason.INVALID_VALUE)

    assert error.reason is FailureReason.INVALID_VALUE
    assert InvalidTriggerConfigurationError("x").reason is FailureReason.CONFIGURATION_MISSING


def test_to_result():
    result = UnknownTriggerTypeError("no such type").to_result()

    assert result.is_failure
    assert result.reason is FailureReason.UNKNOWN_TRIGGER_TYPE
    assert result.message == "no such type"
