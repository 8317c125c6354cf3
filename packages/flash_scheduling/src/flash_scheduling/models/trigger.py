"""Trigger - A named, configured scheduling rule bound to a trigger type."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any

from flash_scheduling.exceptions import StaleIdentityError
from flash_scheduling.logging import get_logger
from flash_scheduling.registry import TriggerTypeRegistry, get_default_registry
from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import TriggerConfigBase, TriggerRecord
from flash_scheduling.triggers.base import TriggerType, as_utc, utcnow

logger = get_logger(__name__)

DESCRIPTION_KEY = "Description"


def is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _combine_metadata(
    description: str | None, metadata: Mapping[str, Any] | None
) -> dict[str, Any]:
    combined: dict[str, Any] = {}
    if description and description.strip():
        combined[DESCRIPTION_KEY] = description
    if metadata:
        combined.update(metadata)
    return combined


class Trigger:
    """
    A trigger: identity, a configuration payload and the type that reads it.

    The trigger type is resolved once, at construction, either passed in
    directly or looked up by tag in a registry. Type-specific checks are
    deferred to `validate()`, so a trigger with a broken configuration can
    still be loaded, inspected and reported on.

    Only `enabled` and `metadata` change after construction, through
    `set_enabled`, `set_metadata` and `remove_metadata`. Each of them moves
    `modified_utc` forward. Instances are not thread-safe.

    Examples:
        >>> trigger = Trigger.create_cron("nightly", "0 2 * * *", "Europe/London")
        >>> trigger.trigger_type_name
        'Cron'
        >>> trigger.validate().is_success
        True

    Raises:
        StaleIdentityError: If id, name or type is blank, or
            `modified_utc` is earlier than `created_utc`.
        UnknownTriggerTypeError: If a type tag is not in the registry.
    """

    def __init__(
        self,
        trigger_id: str,
        name: str,
        trigger_type: TriggerType | str,
        configuration: Mapping[str, Any] | None = None,
        *,
        enabled: bool = True,
        created_utc: datetime | None = None,
        modified_utc: datetime | None = None,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ):
        if is_blank(trigger_id):
            raise StaleIdentityError("Trigger ID cannot be null or empty")
        if is_blank(name):
            raise StaleIdentityError("Trigger name cannot be null or empty")

        if isinstance(trigger_type, TriggerType):
            resolved = trigger_type
        else:
            if is_blank(trigger_type):
                raise StaleIdentityError("Trigger type cannot be null or empty")
            resolved = (registry or get_default_registry()).resolve(trigger_type)

        now = utcnow()
        created = as_utc(created_utc) if created_utc is not None else now
        modified = as_utc(modified_utc) if modified_utc is not None else created
        if modified < created:
            msg = (
                f"Trigger '{trigger_id}' modified timestamp {modified.isoformat()} "
                f"is earlier than created timestamp {created.isoformat()}"
            )
            raise StaleIdentityError(msg)

        self._trigger_id = trigger_id
        self._name = name
        self._trigger_type = resolved
        self._configuration: dict[str, Any] = dict(configuration or {})
        self._metadata: dict[str, Any] = dict(metadata or {})
        self._enabled = enabled
        self._created_utc = created
        self._modified_utc = modified
        self._config: TriggerConfigBase | None = None

    # --- Factories ---

    @classmethod
    def create_cron(
        cls,
        name: str,
        cron_expression: str,
        time_zone_id: str | None = None,
        description: str | None = None,
        enabled: bool = True,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ) -> Trigger:
        """Create a Cron trigger with a new id."""
        if is_blank(cron_expression):
            raise ValueError("Cron expression cannot be null or empty")

        configuration: dict[str, Any] = {"CronExpression": cron_expression}
        if time_zone_id and time_zone_id.strip():
            configuration["TimeZoneId"] = time_zone_id
        return cls._create(
            name, "Cron", configuration, description, enabled, metadata, registry
        )

    @classmethod
    def create_interval(
        cls,
        name: str,
        interval_minutes: int,
        start_delay_minutes: int = 0,
        description: str | None = None,
        enabled: bool = True,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ) -> Trigger:
        """
        Create an Interval trigger with a new id.

        A positive `start_delay_minutes` is stored as a StartTime that many
        minutes from now.
        """
        if interval_minutes <= 0:
            raise ValueError("Interval must be greater than zero")
        if start_delay_minutes < 0:
            raise ValueError("Start delay cannot be negative")

        configuration: dict[str, Any] = {"IntervalMinutes": interval_minutes}
        if start_delay_minutes > 0:
            configuration["StartTime"] = utcnow() + timedelta(
                minutes=start_delay_minutes
            )
        return cls._create(
            name, "Interval", configuration, description, enabled, metadata, registry
        )

    @classmethod
    def create_once(
        cls,
        name: str,
        execute_at_utc: datetime,
        description: str | None = None,
        enabled: bool = True,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ) -> Trigger:
        """Create a Once trigger. `execute_at_utc` must be an aware UTC instant."""
        if (
            execute_at_utc.tzinfo is None
            or execute_at_utc.utcoffset() != timedelta(0)
        ):
            raise ValueError("Execute time must be in UTC")

        configuration = {"StartTime": execute_at_utc}
        return cls._create(
            name, "Once", configuration, description, enabled, metadata, registry
        )

    @classmethod
    def create_manual(
        cls,
        name: str,
        description: str | None = None,
        required_role: str | None = None,
        allow_concurrent: bool = True,
        enabled: bool = True,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ) -> Trigger:
        """Create a Manual trigger with a new id."""
        configuration: dict[str, Any] = {"AllowConcurrent": allow_concurrent}
        if description and description.strip():
            configuration["Description"] = description
        if required_role and required_role.strip():
            configuration["RequiredRole"] = required_role
        return cls._create(
            name, "Manual", configuration, description, enabled, metadata, registry
        )

    @classmethod
    def from_config(
        cls,
        name: str,
        config: TriggerConfigBase,
        description: str | None = None,
        enabled: bool = True,
        metadata: Mapping[str, Any] | None = None,
        registry: TriggerTypeRegistry | None = None,
    ) -> Trigger:
        """
        Create a trigger from a typed configuration.

        Examples:
            >>> from flash_scheduling.schemas import IntervalTriggerConfig
            >>> trigger = Trigger.from_config(
            ...     "poll", IntervalTriggerConfig(interval_minutes=15)
            ... )
            >>> dict(trigger.configuration)
            {'IntervalMinutes': 15}
        """
        trigger = cls._create(
            name,
            config.trigger_type,
            config.to_configuration(),
            description,
            enabled,
            metadata,
            registry,
        )
        if isinstance(config, trigger.trigger_type.config_model):
            trigger._config = config
        return trigger

    @classmethod
    def _create(
        cls,
        name: str,
        type_name: str,
        configuration: dict[str, Any],
        description: str | None,
        enabled: bool,
        metadata: Mapping[str, Any] | None,
        registry: TriggerTypeRegistry | None,
    ) -> Trigger:
        now = utcnow()
        return cls(
            trigger_id=uuid.uuid4().hex,
            name=name,
            trigger_type=type_name,
            configuration=configuration,
            enabled=enabled,
            created_utc=now,
            modified_utc=now,
            metadata=_combine_metadata(description, metadata),
            registry=registry,
        )

    # --- Records ---

    @classmethod
    def from_record(
        cls, record: TriggerRecord, registry: TriggerTypeRegistry | None = None
    ) -> Trigger:
        return cls(
            trigger_id=record.trigger_id,
            name=record.name,
            trigger_type=record.trigger_type,
            configuration=record.configuration,
            enabled=record.enabled,
            created_utc=record.created_utc,
            modified_utc=record.modified_utc,
            metadata=record.metadata,
            registry=registry,
        )

    def to_record(self) -> TriggerRecord:
        return TriggerRecord(
            trigger_id=self._trigger_id,
            name=self._name,
            trigger_type=self.trigger_type_name,
            configuration=dict(self._configuration),
            enabled=self._enabled,
            created_utc=self._created_utc,
            modified_utc=self._modified_utc,
            metadata=dict(self._metadata),
        )

    # --- Properties ---

    @property
    def trigger_id(self) -> str:
        return self._trigger_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def trigger_type(self) -> TriggerType:
        return self._trigger_type

    @property
    def trigger_type_name(self) -> str:
        return self._trigger_type.name

    @property
    def configuration(self) -> Mapping[str, Any]:
        return MappingProxyType(self._configuration)

    @property
    def config(self) -> TriggerConfigBase:
        """
        The configuration parsed as its typed model. Parsed on first access.

        Raises:
            InvalidTriggerConfigurationError: If the payload does not parse.
        """
        if self._config is None:
            self._config = self._trigger_type.parse_config(self._configuration)
        return self._config

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def metadata(self) -> Mapping[str, Any]:
        return MappingProxyType(self._metadata)

    @property
    def description(self) -> str | None:
        value = self._metadata.get(DESCRIPTION_KEY)
        return value if isinstance(value, str) else None

    @property
    def created_utc(self) -> datetime:
        return self._created_utc

    @property
    def modified_utc(self) -> datetime:
        return self._modified_utc

    @property
    def requires_schedule(self) -> bool:
        return self._trigger_type.requires_schedule

    @property
    def is_immediate(self) -> bool:
        return self._trigger_type.is_immediate

    # --- Behaviour ---

    def validate(self, now: datetime | None = None) -> ValidationResult:
        """Re-check identity, then validate the configuration for its type."""
        if is_blank(self._trigger_id):
            return ValidationResult.failure(
                FailureReason.STALE_IDENTITY, "Trigger ID cannot be null or empty"
            )
        if is_blank(self._name):
            return ValidationResult.failure(
                FailureReason.STALE_IDENTITY, "Trigger name cannot be null or empty"
            )
        if is_blank(self._trigger_type.name):
            return ValidationResult.failure(
                FailureReason.STALE_IDENTITY, "Trigger type cannot be null or empty"
            )
        if self._modified_utc < self._created_utc:
            return ValidationResult.failure(
                FailureReason.STALE_IDENTITY,
                "Modified timestamp cannot be earlier than created timestamp",
            )
        return self._trigger_type.validate_trigger(self._configuration, now)

    def calculate_next_execution(
        self,
        last_execution: datetime | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        return self._trigger_type.calculate_next_execution(
            self._config if self._config is not None else self._configuration,
            last_execution,
            now,
        )

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        self._touch()

    def set_metadata(self, key: str, value: Any) -> None:
        if is_blank(key):
            raise ValueError("Metadata key cannot be null or empty")
        self._metadata[key] = value
        self._touch()

    def remove_metadata(self, key: str) -> bool:
        """Remove a metadata entry. Returns True if something was removed."""
        if is_blank(key):
            raise ValueError("Metadata key cannot be null or empty")
        if key not in self._metadata:
            return False
        del self._metadata[key]
        self._touch()
        return True

    def _touch(self) -> None:
        self._modified_utc = max(utcnow(), self._modified_utc)

    # --- Object protocol ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Trigger):
            return self._trigger_id == other._trigger_id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._trigger_id)

    def __str__(self) -> str:
        state = "Enabled" if self._enabled else "Disabled"
        return (
            f"Trigger[{self._trigger_id}]: {self._name} "
            f"({self.trigger_type_name}) - {state}"
        )

    def __repr__(self) -> str:
        return (
            f"Trigger(trigger_id={self._trigger_id!r}, name={self._name!r}, "
            f"trigger_type={self.trigger_type_name!r}, enabled={self._enabled!r})"
        )
