"""Schedule - A trigger bound to a process, with runtime state."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from flash_scheduling.exceptions import StaleIdentityError
from flash_scheduling.logging import get_logger, scoped_schedule_id
from flash_scheduling.registry import TriggerTypeRegistry
from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import ScheduleRecord
from flash_scheduling.triggers.base import as_utc, utcnow

from .trigger import Trigger, is_blank

logger = get_logger(__name__)

MANUAL_CRON_EXPRESSION = "@manual"
DEFAULT_TIME_ZONE_ID = "UTC"


def _normalize_instant(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        msg = "Next execution must be timezone-aware; naive datetimes are ambiguous"
        raise ValueError(msg)
    return value.astimezone(timezone.utc)


class Schedule:
    """
    Binds a Trigger to an opaque process descriptor.

    The schedule owns runtime state only: whether it is active and the
    cached next execution instant the scheduler loop compares against the
    wall clock. `process_type` and `process_configuration` are carried
    through untouched.

    The constructor does not validate; call `validate()` to report problems.
    Instances are not thread-safe.

    Examples:
        >>> trigger = Trigger.create_interval("poll", 15)
        >>> schedule = Schedule.create_new("poll-inbox", "email.poll", {}, trigger)
        >>> schedule.refresh_next_execution() is not None
        True
        >>> schedule.cron_expression
        '@manual'
    """

    def __init__(
        self,
        schedule_id: str,
        name: str,
        process_id: str,
        process_type: str,
        process_configuration: Any,
        trigger: Trigger | None,
        *,
        active: bool = True,
        next_execution_utc: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        description: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ):
        now = utcnow()
        self._schedule_id = schedule_id
        self._name = name
        self._process_id = process_id
        self._process_type = process_type
        self._process_configuration = process_configuration
        self._trigger = trigger
        self._active = active
        self._next_execution_utc = (
            as_utc(next_execution_utc) if next_execution_utc is not None else None
        )
        self._created_at = as_utc(created_at) if created_at is not None else now
        self._updated_at = (
            as_utc(updated_at) if updated_at is not None else self._created_at
        )
        self._description = description
        self._metadata: dict[str, Any] = dict(metadata or {})

    # --- Factories ---

    @classmethod
    def create_new(
        cls,
        name: str,
        process_type: str,
        process_configuration: Any,
        trigger: Trigger,
        description: str | None = None,
        active: bool = True,
        metadata: Mapping[str, Any] | None = None,
    ) -> Schedule:
        """Create a schedule with fresh schedule and process ids."""
        if is_blank(name):
            raise StaleIdentityError("Schedule name cannot be null or empty")

        now = utcnow()
        return cls(
            schedule_id=uuid.uuid4().hex,
            name=name,
            process_id=uuid.uuid4().hex,
            process_type=process_type,
            process_configuration=process_configuration,
            trigger=trigger,
            active=active,
            created_at=now,
            updated_at=now,
            description=description,
            metadata=metadata,
        )

    @classmethod
    def create(
        cls,
        schedule_id: str,
        name: str,
        process_type: str,
        process_configuration: Any,
        trigger: Trigger,
        created_at: datetime,
        updated_at: datetime,
        description: str | None = None,
        active: bool = True,
        process_id: str | None = None,
        next_execution_utc: datetime | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Schedule:
        """Rehydrate an existing schedule. A missing process id is generated."""
        if is_blank(schedule_id):
            raise StaleIdentityError("Schedule ID cannot be null or empty")
        if is_blank(name):
            raise StaleIdentityError("Schedule name cannot be null or empty")

        return cls(
            schedule_id=schedule_id,
            name=name,
            process_id=process_id or uuid.uuid4().hex,
            process_type=process_type,
            process_configuration=process_configuration,
            trigger=trigger,
            active=active,
            next_execution_utc=next_execution_utc,
            created_at=created_at,
            updated_at=updated_at,
            description=description,
            metadata=metadata,
        )

    # --- Records ---

    @classmethod
    def from_record(
        cls, record: ScheduleRecord, registry: TriggerTypeRegistry | None = None
    ) -> Schedule:
        trigger = (
            Trigger.from_record(record.trigger, registry)
            if record.trigger is not None
            else None
        )
        return cls(
            schedule_id=record.schedule_id,
            name=record.name,
            process_id=record.process_id,
            process_type=record.process_type,
            process_configuration=record.process_configuration,
            trigger=trigger,
            active=record.active,
            next_execution_utc=record.next_execution_utc,
            created_at=record.created_at,
            updated_at=record.updated_at,
            description=record.description,
            metadata=record.metadata,
        )

    def to_record(self) -> ScheduleRecord:
        return ScheduleRecord(
            schedule_id=self._schedule_id,
            name=self._name,
            process_id=self._process_id,
            process_type=self._process_type,
            process_configuration=self._process_configuration,
            trigger=self._trigger.to_record() if self._trigger is not None else None,
            active=self._active,
            next_execution_utc=self._next_execution_utc,
            created_at=self._created_at,
            updated_at=self._updated_at,
            description=self._description,
            metadata=dict(self._metadata),
        )

    # --- Properties ---

    @property
    def schedule_id(self) -> str:
        return self._schedule_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def process_id(self) -> str:
        return self._process_id

    @property
    def process_type(self) -> str:
        return self._process_type

    @property
    def process_configuration(self) -> Any:
        return self._process_configuration

    @property
    def trigger(self) -> Trigger | None:
        return self._trigger

    @property
    def active(self) -> bool:
        return self._active

    @property
    def next_execution_utc(self) -> datetime | None:
        return self._next_execution_utc

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def metadata(self) -> Mapping[str, Any]:
        return MappingProxyType(self._metadata)

    @property
    def cron_expression(self) -> str:
        """The trigger's CronExpression, or "@manual" for other kinds."""
        return self._trigger_setting("CronExpression") or MANUAL_CRON_EXPRESSION

    @property
    def time_zone_id(self) -> str:
        return self._trigger_setting("TimeZoneId") or DEFAULT_TIME_ZONE_ID

    def _trigger_setting(self, key: str) -> str | None:
        if self._trigger is None:
            return None
        value = self._trigger.configuration.get(key)
        if isinstance(value, str) and value.strip():
            return value
        return None

    # --- Behaviour ---

    def validate(self, now: datetime | None = None) -> ValidationResult:
        """
        Check identity, process descriptor and trigger, in that order.

        Returns the first failure found. Trigger failures are returned as
        reported by `Trigger.validate()`.
        """
        identity = (
            (self._schedule_id, "Schedule ID cannot be null or empty"),
            (self._name, "Schedule name cannot be null or empty"),
            (self._process_id, "Process ID cannot be null or empty"),
            (self._process_type, "Process type cannot be null or empty"),
        )
        for value, message in identity:
            if is_blank(value):
                return ValidationResult.failure(FailureReason.STALE_IDENTITY, message)

        if self._process_configuration is None:
            return ValidationResult.failure(
                FailureReason.CONFIGURATION_MISSING,
                "Process configuration cannot be null",
            )
        if self._trigger is None:
            return ValidationResult.failure(
                FailureReason.CONFIGURATION_MISSING, "Trigger cannot be null"
            )

        trigger_result = self._trigger.validate(now)
        if trigger_result.is_failure:
            return trigger_result

        if self._updated_at < self._created_at:
            return ValidationResult.failure(
                FailureReason.STALE_IDENTITY,
                "Updated timestamp cannot be earlier than created timestamp",
            )
        return ValidationResult.success()

    def update_active_status(self, active: bool) -> None:
        self._active = active
        self._touch()

    def update_next_execution(self, next_execution: datetime | None) -> None:
        """
        Store the next execution instant.

        Raises:
            ValueError: If `next_execution` is a naive datetime.
        """
        self._next_execution_utc = _normalize_instant(next_execution)
        self._touch()

    def is_due(self, now: datetime | None = None) -> bool:
        """True when active and the cached next execution is at or before now."""
        if not self._active or self._next_execution_utc is None:
            return False
        now = as_utc(now) if now is not None else utcnow()
        return self._next_execution_utc <= now

    def refresh_next_execution(
        self,
        last_execution: datetime | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        """
        Recompute the next execution through the bound trigger and store it.

        An inactive schedule, a missing trigger or a disabled trigger stores
        None.
        """
        with scoped_schedule_id(self._schedule_id):
            next_execution: datetime | None = None
            if not self._active:
                logger.debug("Schedule %s is inactive", self._name)
            elif self._trigger is None:
                logger.warning("Schedule %s has no trigger", self._name)
            elif not self._trigger.enabled:
                logger.debug("Trigger %s is disabled", self._trigger.name)
            else:
                next_execution = self._trigger.calculate_next_execution(
                    last_execution, now
                )
                logger.debug(
                    "Next execution for %s: %s",
                    self._name,
                    next_execution.isoformat() if next_execution else None,
                )

            self.update_next_execution(next_execution)
            return self._next_execution_utc

    def _touch(self) -> None:
        self._updated_at = max(utcnow(), self._created_at, self._updated_at)

    # --- Object protocol ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Schedule):
            return self._schedule_id == other._schedule_id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._schedule_id)

    def __str__(self) -> str:
        state = "Active" if self._active else "Inactive"
        return f"Schedule[{self._schedule_id}]: {self._name} ({self._process_type}) - {state}"

    def __repr__(self) -> str:
        return (
            f"Schedule(schedule_id={self._schedule_id!r}, name={self._name!r}, "
            f"process_type={self._process_type!r}, active={self._active!r})"
        )
