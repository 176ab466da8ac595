"""Application services."""

from daytrack_server.services.activity import ActivityService
from daytrack_server.services.locks import DayLockRegistry, day_locks

__all__ = [
    "ActivityService",
    "DayLockRegistry",
    "day_locks",
]
