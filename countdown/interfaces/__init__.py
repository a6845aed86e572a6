"""Abstract interfaces for infrastructure abstraction."""

from countdown.interfaces.local_cache import ILocalCache
from countdown.interfaces.milestone_store import (
    ErrorHandler,
    IMilestoneStore,
    ISubscription,
    SnapshotHandler,
)

__all__ = [
    "IMilestoneStore",
    "ISubscription",
    "ILocalCache",
    "SnapshotHandler",
    "ErrorHandler",
]
