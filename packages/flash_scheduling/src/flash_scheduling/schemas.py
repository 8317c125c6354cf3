"""Pydantic schemas/data contracts for trigger configuration and records."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class TimezonePolicy(Enum):
    """What to do when a TimeZoneId does not resolve."""

    STRICT = "strict"
    FALLBACK_TO_UTC = "fallback_to_utc"


class OnceMissedPolicy(Enum):
    """What a Once trigger does when its StartTime has already passed."""

    FIRE_IMMEDIATELY = "fire_immediately"
    SKIP = "skip"


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


# Blank TimeZoneId values mean "not configured" and fall back to UTC.
ZoneIdType = Annotated[str | None, BeforeValidator(_blank_to_none)]


def _strict_flag(v: Any) -> Any:
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.lower() in ("true", "false"):
        return v.lower() == "true"
    if type(v) is int and v in (0, 1):
        return bool(v)
    raise ValueError("expected a boolean, 'true'/'false' or 0/1")


# Only bool, "true"/"false" in any case and 0/1 are read as flags.
FlagType = Annotated[bool, BeforeValidator(_strict_flag)]



class TriggerConfigBase(BaseModel):
    """
    Common base for per-kind trigger configuration.

    Fields are aliased to the exact configuration keys stored on a Trigger
    (`CronExpression`, `IntervalMinutes`, ...). Both the aliases and the
    python field names are accepted on input.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    trigger_type: str

    def to_configuration(self) -> dict[str, Any]:
        """Dump back to the key/value shape stored on a Trigger."""
        return self.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"trigger_type"},
        )


class CronTriggerConfig(TriggerConfigBase):
    """Configuration for cron-based triggers.

    Examples:
        - CronExpression="0 9 * * MON-FRI" - 9:00 AM on weekdays
        - CronExpression="*/10 * * * * *" - every 10 seconds
        - CronExpression="@daily", TimeZoneId="Europe/London"
    """

    trigger_type: Literal["Cron"] = "Cron"
    cron_expression: str = Field(alias="CronExpression")
    time_zone_id: ZoneIdType = Field(default=None, alias="TimeZoneId")


class IntervalTriggerConfig(TriggerConfigBase):
    """Configuration for fixed-interval triggers, measured in minutes."""

    trigger_type: Literal["Interval"] = "Interval"
    interval_minutes: int = Field(alias="IntervalMinutes")
    start_time: datetime | None = Field(default=None, alias="StartTime")
    time_zone_id: ZoneIdType = Field(default=None, alias="TimeZoneId")


class OnceTriggerConfig(TriggerConfigBase):
    """Configuration for one-time triggers."""

    trigger_type: Literal["Once"] = "Once"
    start_time: datetime = Field(alias="StartTime")
    time_zone_id: ZoneIdType = Field(default=None, alias="TimeZoneId")


class ManualTriggerConfig(TriggerConfigBase):
    """Configuration for triggers fired only by explicit invocation."""

    trigger_type: Literal["Manual"] = "Manual"
    description: str | None = Field(default=None, alias="Description")
    required_role: str | None = Field(default=None, alias="RequiredRole")
    allow_concurrent: FlagType = Field(default=True, alias="AllowConcurrent")


TriggerConfig = Annotated[
    Union[
        CronTriggerConfig,
        IntervalTriggerConfig,
        OnceTriggerConfig,
        ManualTriggerConfig,
    ],
    Field(discriminator="trigger_type"),
]


class TriggerRecord(BaseModel):
    """Plain-data shape of a Trigger as loaded from and saved to storage."""

    trigger_id: str
    name: str
    trigger_type: str
    configuration: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True
    created_utc: datetime
    modified_utc: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class ScheduleRecord(BaseModel):
    """Plain-data shape of a Schedule as loaded from and saved to storage."""

    schedule_id: str
    name: str
    process_id: str
    process_type: str
    process_configuration: Any = None
    trigger: TriggerRecord | None = None
    active: bool = True
    next_execution_utc: datetime | None = None
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
