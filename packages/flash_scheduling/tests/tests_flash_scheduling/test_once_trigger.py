from datetime import datetime, timedelta, timezone

import pytest
from flash_scheduling.results import FailureReason
from flash_scheduling.schemas import OnceMissedPolicy
from flash_scheduling.triggers.once import OnceTriggerType


def test_flags(once):
    assert once.id == 3
    assert once.name == "Once"
    assert once.requires_schedule is True
    assert once.is_immediate is False


def test_future_start_time(once, june_1_2024, utc):
    config = {"StartTime": "2024-07-01T09:00:00Z"}

    assert once.calculate_next_execution(config, None, june_1_2024) == datetime(
        2024, 7, 1, 9, 0, tzinfo=utc
    )


def test_missed_start_fires_now_then_never_again(once, june_1_2024, utc):
    config = {"StartTime": datetime(2024, 1, 1, tzinfo=utc)}

    first = once.calculate_next_execution(config, None, june_1_2024)
    assert first == june_1_2024

    assert once.calculate_next_execution(config, first, june_1_2024) is None


def test_any_history_means_spent(once, june_1_2024, utc):
    config = {"StartTime": "2024-07-01T09:00:00Z"}
    unrelated_run = datetime(2020, 1, 1, tzinfo=utc)

    assert once.calculate_next_execution(config, unrelated_run, june_1_2024) is None


def test_skip_policy_drops_missed_start(june_1_2024, utc):
    once = OnceTriggerType(missed_policy=OnceMissedPolicy.SKIP)
    config = {"StartTime": datetime(2024, 1, 1, tzinfo=utc)}

    assert once.calculate_next_execution(config, None, june_1_2024) is None


def test_skip_policy_keeps_future_start(june_1_2024, utc):
    once = OnceTriggerType(missed_policy=OnceMissedPolicy.SKIP)
    start = datetime(2024, 7, 1, tzinfo=utc)

    assert once.calculate_next_execution({"StartTime": start}, None, june_1_2024) == start


def test_naive_start_time_is_read_in_zone(once, june_1_2024, utc):
    config = {
        "StartTime": datetime(2024, 7, 1, 9, 0),
        "TimeZoneId": "America/New_York",
    }

    # 09:00 EDT
    assert once.calculate_next_execution(config, None, june_1_2024) == datetime(
        2024, 7, 1, 13, 0, tzinfo=utc
    )


def test_offset_start_time_is_converted(once, june_1_2024, utc):
    config = {"StartTime": "2024-07-01T09:00:00+02:00"}

    result = once.calculate_next_execution(config, None, june_1_2024)

    assert result == datetime(2024, 7, 1, 7, 0, tzinfo=utc)
    assert result.tzinfo is timezone.utc


@pytest.mark.parametrize("config", [None, {}, {"StartTime": "soon"}])
def test_unreadable_configuration_returns_none(once, config, june_1_2024):
    assert once.calculate_next_execution(config, None, june_1_2024) is None


class TestValidation:
    def test_valid_utc_start(self, once):
        result = once.validate_trigger({"StartTime": "2030-01-01T00:00:00Z"})
        assert result.is_success

    def test_start_time_in_the_past_is_still_valid(self, once, june_1_2024, utc):
        result = once.validate_trigger(
            {"StartTime": june_1_2024 - timedelta(days=30)}, june_1_2024
        )
        assert result.is_success

    def test_missing_start_time(self, once):
        result = once.validate_trigger({})

        assert result.reason is FailureReason.CONFIGURATION_MISSING
        assert "StartTime" in result.message

    def test_null_start_time_is_missing(self, once):
        result = once.validate_trigger({"StartTime": None})

        assert result.reason is FailureReason.CONFIGURATION_MISSING
        assert "StartTime" in result.message

    def test_naive_start_time_is_rejected(self, once):
        result = once.validate_trigger({"StartTime": datetime(2030, 1, 1)})

        assert result.reason is FailureReason.INVALID_VALUE

    def test_non_utc_offset_is_rejected(self, once):
        result = once.validate_trigger({"StartTime": "2030-01-01T00:00:00+02:00"})

        assert result.reason is FailureReason.INVALID_VALUE

    def test_unparseable_start_time(self, once):
        result = once.validate_trigger({"StartTime": "soon"})

        assert result.reason is FailureReason.INVALID_VALUE

    def test_unknown_zone(self, once):
        result = once.validate_trigger(
            {"StartTime": "2030-01-01T00:00:00Z", "TimeZoneId": "Atlantis/Central"}
        )

        assert result.reason is FailureReason.UNKNOWN_TIMEZONE
