from datetime import datetime, timedelta

import pytest
from flash_scheduling.exceptions import MalformedCronExpressionError
from flash_scheduling.results import FailureReason
from flash_scheduling.triggers.cron import CronExpression


def test_five_fields_default_seconds_to_zero():
    expr = CronExpression("30 9 * * *")

    assert expr.second.values == {0}
    assert expr.minute.values == {30}
    assert expr.hour.values == {9}


def test_six_fields_include_seconds():
    expr = CronExpression("15 30 9 * * *")

    assert expr.second.values == {15}
    assert expr.minute.values == {30}


def test_ranges_lists_and_steps():
    expr = CronExpression("0-10/5 1,2,3 */6 * *")

    assert expr.minute.values == {0, 5, 10}
    assert expr.hour.values == {1, 2, 3}
    assert expr.day.values == set(range(1, 32, 6))


def test_aliases_are_case_insensitive():
    expr = CronExpression("0 0 * jan-mar Mon-Fri")

    assert expr.month.values == {1, 2, 3}
    assert expr.day_of_week.values == {1, 2, 3, 4, 5}


def test_weekday_seven_is_sunday():
    assert CronExpression("0 0 * * 7").day_of_week.values == {0}
    assert CronExpression("0 0 * * 5-7").day_of_week.values == {5, 6, 0}


def test_question_mark_is_wildcard():
    expr = CronExpression("0 0 ? * MON")
    assert expr.day.is_wildcard


@pytest.mark.parametrize(
    "descriptor, expected",
    [
        ("@yearly", "0 0 0 1 1 *"),
        ("@Daily", "0 0 0 * * *"),
        ("@HOURLY", "0 0 * * * *"),
        ("@every_second", "* * * * * *"),
    ],
)
def test_descriptors_expand(descriptor, expected):
    assert CronExpression(descriptor).second.values == CronExpression(expected).second.values
    assert CronExpression(descriptor).hour.values == CronExpression(expected).hour.values
    assert CronExpression(descriptor).month.values == CronExpression(expected).month.values


@pytest.mark.parametrize(
    "expression",
    [
        "",
        "   ",
        "not-a-cron",
        "* * *",
        "* * * * * * *",
        "60 * * * *",
        "* 24 * * *",
        "* * 0 * *",
        "* * * 13 *",
        "* * * * 8",
        "5-1 * * * *",
        "*/0 * * * *",
        "@fortnightly",
        "a * * * *",
    ],
)
def test_malformed_expressions_raise(expression):
    with pytest.raises(MalformedCronExpressionError) as exc_info:
        CronExpression(expression)

    assert exc_info.value.reason is FailureReason.MALFORMED_EXPRESSION


def test_next_occurrence_is_strictly_after(utc):
    expr = CronExpression("0 9 * * *")
    at_nine = datetime(2024, 6, 1, 9, 0, tzinfo=utc)

    assert expr.next_occurrence(at_nine) == datetime(2024, 6, 2, 9, 0, tzinfo=utc)


def test_next_occurrence_ignores_microseconds(utc):
    expr = CronExpression("* * * * * *")
    reference = datetime(2024, 6, 1, 9, 0, 0, 500_000, tzinfo=utc)

    assert expr.next_occurrence(reference) == datetime(2024, 6, 1, 9, 0, 1, tzinfo=utc)


def test_every_15_minutes(june_1_2024):
    expr = CronExpression("*/15 * * * *")

    first = expr.next_occurrence(june_1_2024)
    assert first == june_1_2024 + timedelta(minutes=15)

    assert first
    assert expr.next_occurrence(first) == june_1_2024 + timedelta(minutes=30)


def test_month_rollover_to_next_year(june_1_2024, utc):
    expr = CronExpression("0 0 1 JAN *")

    assert expr.next_occurrence(june_1_2024) == datetime(2025, 1, 1, tzinfo=utc)


def test_leap_day(utc):
    expr = CronExpression("0 0 29 2 *")
    reference = datetime(2024, 3, 1, tzinfo=utc)

    assert expr.next_occurrence(reference) == datetime(2028, 2, 29, tzinfo=utc)


def test_day_of_month_or_day_of_week(june_1_2024, utc):
    """Both restricted: the 13th OR any Friday."""
    expr = CronExpression("0 0 13 * FRI")

    # Saturday June 1st -> Friday June 7th
    first = expr.next_occurrence(june_1_2024)
    assert first == datetime(2024, 6, 7, tzinfo=utc)

    # Friday June 7th -> Thursday June 13th
    assert first
    assert expr.next_occurrence(first) == datetime(2024, 6, 13, tzinfo=utc)


def test_day_of_week_only(june_1_2024, utc):
    expr = CronExpression("0 0 * * SUN")

    assert expr.next_occurrence(june_1_2024) == datetime(2024, 6, 2, tzinfo=utc)


def test_impossible_date_never_occurs(june_1_2024):
    expr = CronExpression("0 0 30 2 *")

    assert expr.next_occurrence(june_1_2024) is None


def test_iteration_budget_exhausted(june_1_2024):
    expr = CronExpression("0 0 1 1 *")

    assert expr.next_occurrence(june_1_2024, max_iterations=1) is None


def test_end_of_calendar_returns_none(utc):
    expr = CronExpression("0 0 1 1 *")
    reference = datetime(9999, 6, 1, tzinfo=utc)

    assert expr.next_occurrence(reference) is None


class TestWallClockSearch:
    """America/New_York: DST starts 2024-03-10, ends 2024-11-03."""

    def test_daily_time_stays_local_across_spring_forward(self, new_york, utc):
        expr = CronExpression("0 9 * * *")

        # 09:00 EST = 14:00 UTC
        before = expr.next_occurrence(datetime(2024, 3, 8, 15, 0, tzinfo=utc), new_york)
        assert before == datetime(2024, 3, 9, 14, 0, tzinfo=utc)

        # 09:00 EDT = 13:00 UTC
        after = expr.next_occurrence(datetime(2024, 3, 9, 15, 0, tzinfo=utc), new_york)
        assert after == datetime(2024, 3, 10, 13, 0, tzinfo=utc)

    def test_skipped_time_is_shifted_by_the_gap(self, new_york, utc):
        expr = CronExpression("30 2 * * *")
        midnight_est = datetime(2024, 3, 10, 5, 0, tzinfo=utc)

        # 02:30 does not exist that day; fires at 03:30 EDT
        assert expr.next_occurrence(midnight_est, new_york) == datetime(
            2024, 3, 10, 7, 30, tzinfo=utc
        )

    def test_repeated_time_fires_in_first_pass_only(self, new_york, utc):
        expr = CronExpression("30 1 * * *")
        midnight_edt = datetime(2024, 11, 3, 4, 0, tzinfo=utc)

        # 01:30 EDT
        first = expr.next_occurrence(midnight_edt, new_york)
        assert first == datetime(2024, 11, 3, 5, 30, tzinfo=utc)

        # Next day 01:30 EST, not the repeated 01:30 EST of the same night
        assert first
        assert expr.next_occurrence(first, new_york) == datetime(
            2024, 11, 4, 6, 30, tzinfo=utc
        )

    def test_reference_inside_repeated_hour_moves_forward(self, new_york, utc):
        expr = CronExpression("*/15 * * * *")
        # 01:20 EST, second pass through the repeated hour
        reference = datetime(2024, 11, 3, 6, 20, tzinfo=utc)

        assert expr.next_occurrence(reference, new_york) == datetime(
            2024, 11, 3, 6, 30, tzinfo=utc
        )
