"""Registry mapping trigger type tags to trigger type instances."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .config import SchedulingSettings, scheduling_settings
from .exceptions import UnknownTriggerTypeError
from .logging import get_logger
from .triggers import (
    CronTriggerType,
    IntervalTriggerType,
    ManualTriggerType,
    OnceTriggerType,
    TriggerType,
)

logger = get_logger(__name__)


class TriggerTypeRegistry:
    """
    Explicit tag -> TriggerType mapping.

    Built once at process start and passed to whatever constructs Triggers.
    Lookups are case-sensitive on the tag (`"Cron"`, `"Interval"`, ...).

    Examples:
        >>> registry = TriggerTypeRegistry([CronTriggerType()])
        >>> registry.resolve("Cron").id
        1
        >>> "Interval" in registry
        False
    """

    def __init__(self, trigger_types: Iterable[TriggerType] = ()):
        self._types: dict[str, TriggerType] = {}
        for trigger_type in trigger_types:
            self.register(trigger_type)

    def register(self, trigger_type: TriggerType, *, replace: bool = False) -> None:
        """
        Add a trigger type under its `name`.

        Raises:
            ValueError: If the tag is already taken and `replace` is False.
        """
        name = trigger_type.name
        if name in self._types and not replace:
            msg = f"Trigger type '{name}' is already registered"
            raise ValueError(msg)
        self._types[name] = trigger_type
        logger.debug("Registered trigger type %s (id=%s)", name, trigger_type.id)

    def resolve(self, name: str) -> TriggerType:
        """
        Look up a trigger type by tag.

        Raises:
            UnknownTriggerTypeError: If no type is registered under `name`.
        """
        trigger_type = self._types.get(name)
        if trigger_type is None:
            known = ", ".join(sorted(self._types)) or "none"
            msg = f"Unknown trigger type '{name}'. Registered types: {known}"
            raise UnknownTriggerTypeError(msg)
        return trigger_type

    def get(self, name: str) -> TriggerType | None:
        return self._types.get(name)

    @property
    def names(self) -> list[str]:
        return list(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[TriggerType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TriggerTypeRegistry({self.names!r})"


def create_default_registry(
    settings: SchedulingSettings | None = None,
) -> TriggerTypeRegistry:
    """
    Build a registry holding the four built-in trigger types.

    Timezone policies, the cron search budget and the Once missed-start
    policy are taken from `settings` (the module settings by default).
    """
    settings = settings or scheduling_settings
    policies = {
        "calculation_timezone_policy": settings.CALCULATION_TIMEZONE_POLICY,
        "validation_timezone_policy": settings.VALIDATION_TIMEZONE_POLICY,
    }
    return TriggerTypeRegistry(
        [
            CronTriggerType(**policies, max_iterations=settings.CRON_MAX_ITERATIONS),
            IntervalTriggerType(**policies),
            OnceTriggerType(**policies, missed_policy=settings.ONCE_MISSED_POLICY),
            ManualTriggerType(**policies),
        ]
    )


_default_registry: TriggerTypeRegistry | None = None


def get_default_registry() -> TriggerTypeRegistry:
    """Lazily built registry used when callers do not pass their own."""
    global _default_registry
    if _default_registry is None:
        _default_registry = create_default_registry()
    return _default_registry
