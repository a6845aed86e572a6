"""
Milestone store interface.

Defines the contract for the authoritative, subscription-capable store.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate

SnapshotHandler = Callable[[list[Milestone]], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class ISubscription(ABC):
    """Handle returned by subscribe(); cancel() stops further pushes."""

    @abstractmethod
    async def cancel(self) -> None:
        """Release the subscription. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether pushes are still being delivered."""
        pass


class IMilestoneStore(ABC):
    """Interface for milestone store operations."""

    @abstractmethod
    async def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> ISubscription:
        """
        Start receiving snapshots of the full milestone set.

        The current contents are pushed first, then again after every
        committed write, ordered by target time. Each push is handled to
        completion before the next one is delivered.
        """
        pass

    @abstractmethod
    async def list(self) -> list[Milestone]:
        """List all milestones, ordered by target time."""
        pass

    @abstractmethod
    async def get(self, milestone_id: str) -> Optional[Milestone]:
        """Get a milestone by ID."""
        pass

    @abstractmethod
    async def create(self, milestone: MilestoneCreate) -> Milestone:
        """Create a milestone. The store assigns its id."""
        pass

    @abstractmethod
    async def update(self, milestone_id: str, update: MilestoneUpdate) -> Milestone:
        """Write the fields set on `update`. Raises NotFoundError for unknown ids."""
        pass

    @abstractmethod
    async def delete(self, milestone_id: str) -> bool:
        """Delete a milestone. Returns True if deleted, False if not found."""
        pass
