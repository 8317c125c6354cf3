"""
Domain - Trigger Types.

A trigger type computes the next execution instant from:
- The trigger's configuration payload
- The last execution (or None before the first run)
- Current time (now)

Trigger types are stateless and deterministic once `now` is fixed.
No I/O, no side effects beyond logging.
"""

from .base import TriggerType
from .cron import CronExpression, CronTriggerType
from .interval import IntervalTriggerType
from .manual import ManualTriggerType
from .once import OnceTriggerType

__all__ = [
    "TriggerType",
    "CronExpression",
    "CronTriggerType",
    "IntervalTriggerType",
    "OnceTriggerType",
    "ManualTriggerType",
]
