from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from flash_scheduling.config import SchedulingSettings
from flash_scheduling.registry import create_default_registry
from flash_scheduling.triggers import (
    CronTriggerType,
    IntervalTriggerType,
    ManualTriggerType,
    OnceTriggerType,
)


@pytest.fixture
def utc():
    return timezone.utc


@pytest.fixture
def new_york():
    return ZoneInfo("America/New_York")


@pytest.fixture
def june_1_2024(utc):
    """
    Saturday, June 1st 2024 00:00:00 UTC.
    Anchor for deterministic calculations.
    """
    return datetime(2024, 6, 1, 0, 0, 0, tzinfo=utc)


@pytest.fixture
def cron():
    return CronTriggerType()


@pytest.fixture
def interval():
    return IntervalTriggerType()


@pytest.fixture
def once():
    return OnceTriggerType()


@pytest.fixture
def manual():
    return ManualTriggerType()


@pytest.fixture
def settings():
    """Settings built from defaults only, ignoring the environment and .env."""
    return SchedulingSettings(_env_file=None)


@pytest.fixture
def registry(settings):
    return create_default_registry(settings)
