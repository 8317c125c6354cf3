"""
Flash Scheduling - Trigger evaluation core.

Decides WHEN a process should next run. Executing the process, polling
schedules and persisting them belong to the caller.
"""

from .config import SchedulingSettings, scheduling_settings
from .exceptions import (
    InvalidTimezoneError,
    InvalidTriggerConfigurationError,
    MalformedCronExpressionError,
    SchedulingError,
    StaleIdentityError,
    UnknownTriggerTypeError,
)
from .models import Schedule, Trigger
from .registry import TriggerTypeRegistry, create_default_registry
from .results import FailureReason, ValidationResult
from .schemas import (
    CronTriggerConfig,
    IntervalTriggerConfig,
    ManualTriggerConfig,
    OnceMissedPolicy,
    OnceTriggerConfig,
    ScheduleRecord,
    TimezonePolicy,
    TriggerConfig,
    TriggerRecord,
)
from .triggers import (
    CronTriggerType,
    IntervalTriggerType,
    ManualTriggerType,
    OnceTriggerType,
    TriggerType,
)

__all__ = [
    "CronTriggerConfig",
    "CronTriggerType",
    "FailureReason",
    "IntervalTriggerConfig",
    "IntervalTriggerType",
    "InvalidTimezoneError",
    "InvalidTriggerConfigurationError",
    "MalformedCronExpressionError",
    "ManualTriggerConfig",
    "ManualTriggerType",
    "OnceMissedPolicy",
    "OnceTriggerConfig",
    "OnceTriggerType",
    "Schedule",
    "ScheduleRecord",
    "SchedulingError",
    "SchedulingSettings",
    "StaleIdentityError",
    "TimezonePolicy",
    "Trigger",
    "TriggerConfig",
    "TriggerRecord",
    "TriggerType",
    "TriggerTypeRegistry",
    "UnknownTriggerTypeError",
    "ValidationResult",
    "create_default_registry",
    "scheduling_settings",
]
