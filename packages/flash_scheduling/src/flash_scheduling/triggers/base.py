from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import ValidationError

from flash_scheduling.exceptions import InvalidTriggerConfigurationError
from flash_scheduling.logging import get_logger
from flash_scheduling.results import FailureReason, ValidationResult
from flash_scheduling.schemas import TimezonePolicy, TriggerConfigBase
from flash_scheduling.timezones import TimezoneResolution, resolve_timezone

logger = get_logger(__name__)

ConfigT = TypeVar("ConfigT", bound=TriggerConfigBase)

ConfigurationInput = Mapping[str, Any] | TriggerConfigBase | None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise an instant to UTC. Naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TriggerType(ABC, Generic[ConfigT]):
    """
    Abstract base class for trigger types.

    A trigger type is the algorithm behind a kind of trigger: it computes
    the next execution instant and validates configuration. Instances hold
    no mutable state and are shared by every Trigger of their kind, so they
    can be used from many threads at once.

    Subclasses declare their tag, capability flags and typed configuration
    model, and implement `_next_execution` and `_validate` against the
    parsed model. Parsing, error translation and the "never raise while
    calculating" guarantee live here.
    """

    id: ClassVar[int]
    name: ClassVar[str]
    requires_schedule: ClassVar[bool]
    is_immediate: ClassVar[bool]
    config_model: ClassVar[type[TriggerConfigBase]]

    def __init__(
        self,
        calculation_timezone_policy: TimezonePolicy = TimezonePolicy.FALLBACK_TO_UTC,
        validation_timezone_policy: TimezonePolicy = TimezonePolicy.STRICT,
    ):
        self.calculation_timezone_policy = calculation_timezone_policy
        self.validation_timezone_policy = validation_timezone_policy

    def parse_config(self, configuration: ConfigurationInput) -> ConfigT:
        """
        Read a configuration payload as this kind's typed model.

        Raises:
            InvalidTriggerConfigurationError: CONFIGURATION_MISSING when the
                payload or a required key is absent, INVALID_VALUE when a
                value has the wrong type.
        """
        if configuration is None:
            msg = f"Trigger configuration is required for {self.name} trigger type"
            raise InvalidTriggerConfigurationError(
                msg, FailureReason.CONFIGURATION_MISSING
            )
        if isinstance(configuration, self.config_model):
            return configuration  # type: ignore[return-value]
        if isinstance(configuration, TriggerConfigBase):
            msg = (
                f"{type(configuration).__name__} cannot configure a "
                f"{self.name} trigger"
            )
            raise InvalidTriggerConfigurationError(msg, FailureReason.INVALID_VALUE)
        if not isinstance(configuration, Mapping):
            msg = (
                f"{self.name} trigger configuration must be a mapping, "
                f"got {type(configuration).__name__}"
            )
            raise InvalidTriggerConfigurationError(msg, FailureReason.INVALID_VALUE)

        try:
            return self.config_model.model_validate(dict(configuration))  # type: ignore[return-value]
        except ValidationError as e:
            raise self._translate(e) from e

    def calculate_next_execution(
        self,
        configuration: ConfigurationInput,
        last_execution: datetime | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        """
        Compute the next UTC instant this trigger should fire.

        Never raises for bad configuration; an unreadable payload simply
        yields None.

        Args:
            configuration: Raw key/value payload or a typed config.
            last_execution: When the trigger last fired, if ever.
            now: Current time. Defaults to the wall clock.
        """
        now = as_utc(now) if now is not None else utcnow()
        if last_execution is not None:
            last_execution = as_utc(last_execution)

        try:
            config = self.parse_config(configuration)
        except InvalidTriggerConfigurationError as e:
            logger.debug("Cannot calculate %s trigger: %s", self.name, e)
            return None

        return self._next_execution(config, last_execution, now)

    def validate_trigger(
        self,
        configuration: ConfigurationInput,
        now: datetime | None = None,
    ) -> ValidationResult:
        """Check that a configuration is complete and sane for this kind."""
        now = as_utc(now) if now is not None else utcnow()
        try:
            config = self.parse_config(configuration)
        except InvalidTriggerConfigurationError as e:
            return e.to_result()
        return self._validate(config, now)

    def resolve_zone(self, time_zone_id: str | None, *, strict: bool) -> TimezoneResolution:
        policy = (
            self.validation_timezone_policy
            if strict
            else self.calculation_timezone_policy
        )
        return resolve_timezone(time_zone_id, policy)

    @abstractmethod
    def _next_execution(
        self,
        config: ConfigT,
        last_execution: datetime | None,
        now: datetime,
    ) -> datetime | None: ...

    @abstractmethod
    def _validate(self, config: ConfigT, now: datetime) -> ValidationResult: ...

    def _translate(self, error: ValidationError) -> InvalidTriggerConfigurationError:
        first = error.errors()[0]
        key = ".".join(str(loc) for loc in first["loc"]) or "configuration"
        # A null required value counts as absent
        if first["type"] == "missing" or (
            first.get("input", ...) is None and self._is_required(key)
        ):
            msg = f"'{key}' is required for {self.name} triggers"
            return InvalidTriggerConfigurationError(
                msg, FailureReason.CONFIGURATION_MISSING
            )
        msg = f"'{key}' has an invalid value for {self.name} triggers: {first['msg']}"
        return InvalidTriggerConfigurationError(msg, FailureReason.INVALID_VALUE)

    def _is_required(self, key: str) -> bool:
        for field_name, field in self.config_model.model_fields.items():
            if key in (field_name, field.alias):
                return field.is_required()
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, self.__class__):
            return self.__dict__ == other.__dict__
        return False

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, tuple(sorted(self.__dict__.items()))))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{self.__class__.__name__}({params})"
