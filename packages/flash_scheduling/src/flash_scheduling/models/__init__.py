from .schedule import Schedule
from .trigger import Trigger

__all__ = ["Schedule", "Trigger"]
