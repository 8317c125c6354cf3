from datetime import datetime, timedelta
from typing import Literal

import pytest
from flash_scheduling.config import SchedulingSettings
from flash_scheduling.exceptions import UnknownTriggerTypeError
from flash_scheduling.models import Trigger
from flash_scheduling.registry import TriggerTypeRegistry, create_default_registry
from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import (
    OnceMissedPolicy,
    TimezonePolicy,
    TriggerConfigBase,
)
from flash_scheduling.triggers import CronTriggerType, TriggerType
from pydantic import Field


class HourlyOffsetConfig(TriggerConfigBase):
    trigger_type: Literal["HourlyOffset"] = "HourlyOffset"
    offset_hours: int = Field(alias="OffsetHours")


class HourlyOffsetTriggerType(TriggerType[HourlyOffsetConfig]):
    """Fires a fixed number of hours after the reference."""

    id = 100
    name = "HourlyOffset"
    requires_schedule = True
    is_immediate = False
    config_model = HourlyOffsetConfig

    def _next_execution(self, config, last_execution, now):
        return (last_execution or now) + timedelta(hours=config.offset_hours)

    def _validate(self, config, now):
        if config.offset_hours < 1:
            return ValidationResult.failure(
                FailureReason.OUT_OF_RANGE, "OffsetHours must be at least 1"
            )
        return ValidationResult.success()


def test_default_registry_holds_builtins(registry):
    assert registry.names == ["Cron", "Interval", "Once", "Manual"]
    assert len(registry) == 4
    assert [t.id for t in registry] == [1, 2, 3, 4]


def test_resolve(registry):
    assert isinstance(registry.resolve("Cron"), CronTriggerType)
    assert "Cron" in registry
    assert "cron" not in registry


def test_resolve_unknown_raises(registry):
    with pytest.raises(UnknownTriggerTypeError, match="Weekly") as exc_info:
        registry.resolve("Weekly")

    assert exc_info.value.reason is FailureReason.UNKNOWN_TRIGGER_TYPE
    assert registry.get("Weekly") is None


def test_duplicate_registration_is_rejected(registry):
    with pytest.raises(ValueError, match="already registered"):
        registry.register(CronTriggerType())

    replacement = CronTriggerType(max_iterations=5)
    registry.register(replacement, replace=True)
    assert registry.resolve("Cron") is replacement


def test_settings_flow_into_trigger_types():
    settings = SchedulingSettings(
        _env_file=None,
        CALCULATION_TIMEZONE_POLICY=TimezonePolicy.STRICT,
        CRON_MAX_ITERATIONS=50,
        ONCE_MISSED_POLICY=OnceMissedPolicy.SKIP,
    )
    registry = create_default_registry(settings)

    assert registry.resolve("Cron").max_iterations == 50
    assert registry.resolve("Once").missed_policy is OnceMissedPolicy.SKIP
    for trigger_type in registry:
        assert trigger_type.calculation_timezone_policy is TimezonePolicy.STRICT
        assert trigger_type.validation_timezone_policy is TimezonePolicy.STRICT


def test_registered_types_are_shared(registry):
    first = Trigger.create_cron("a", "0 * * * *", registry=registry)
    second = Trigger.create_cron("b", "30 * * * *", registry=registry)

    assert first.trigger_type is second.trigger_type


class TestCustomTriggerType:
    def test_new_kind_works_without_touching_models(self, registry, june_1_2024):
        registry.register(HourlyOffsetTriggerType())
        trigger = Trigger(
            "t-1", "offset", "HourlyOffset", {"OffsetHours": 3}, registry=registry
        )

        assert trigger.validate().is_success
        assert trigger.calculate_next_execution(now=june_1_2024) == (
            june_1_2024 + timedelta(hours=3)
        )

    def test_custom_validation(self, registry):
        registry.register(HourlyOffsetTriggerType())
        trigger = Trigger(
            "t-1", "offset", "HourlyOffset", {"OffsetHours": 0}, registry=registry
        )

        assert trigger.validate().reason is FailureReason.OUT_OF_RANGE

    def test_unregistered_kind_fails_at_construction(self, registry):
        with pytest.raises(UnknownTriggerTypeError):
            Trigger("t-1", "offset", "HourlyOffset", {"OffsetHours": 3}, registry=registry)

    def test_from_typed_config(self, registry, utc):
        registry.register(HourlyOffsetTriggerType())
        trigger = Trigger.from_config(
            "offset", HourlyOffsetConfig(offset_hours=2), registry=registry
        )
        now = datetime(2024, 6, 1, tzinfo=utc)

        assert trigger.configuration == {"OffsetHours": 2}
        assert trigger.calculate_next_execution(now=now) == now + timedelta(hours=2)
