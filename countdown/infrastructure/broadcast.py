"""
In-process snapshot fan-out for store subscriptions.

Each subscriber gets its own queue and a pump task that awaits the handler
for one snapshot before taking the next, so pushes never overlap.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Union

from countdown.core.logger import setup_logger
from countdown.interfaces.milestone_store import ErrorHandler, ISubscription, SnapshotHandler
from countdown.models.milestone import Milestone

logger = setup_logger(__name__)


@dataclass(frozen=True)
class _Failure:
    error: Exception


_Item = Union[list[Milestone], _Failure]


class QueueSubscription(ISubscription):
    """Subscription backed by an asyncio.Queue and a single pump task."""

    def __init__(
        self,
        broadcaster: "SnapshotBroadcaster",
        on_change: SnapshotHandler,
        on_error: ErrorHandler,
    ) -> None:
        self._broadcaster = broadcaster
        self._on_change = on_change
        self._on_error = on_error
        self._queue: asyncio.Queue[_Item] = asyncio.Queue()
        self._active = True
        self._task = asyncio.create_task(self._pump())

    @property
    def active(self) -> bool:
        return self._active

    def push(self, item: _Item) -> None:
        if self._active:
            self._queue.put_nowait(item)

    def fail(self, error: Exception) -> None:
        """Queue a terminal error behind any pending snapshots."""
        self.push(_Failure(error))

    async def _pump(self) -> None:
        while self._active:
            item = await self._queue.get()
            if isinstance(item, _Failure):
                self._active = False
                await self._broadcaster.detach(self)
                try:
                    await self._on_error(item.error)
                except Exception:
                    logger.exception("Subscription error handler raised")
                return
            try:
                await self._on_change(item)
            except Exception:
                logger.exception("Subscription snapshot handler raised")

    async def cancel(self) -> None:
        if not self._active and self._task.done():
            return
        self._active = False
        await self._broadcaster.detach(self)
        if self._task is asyncio.current_task():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class SnapshotBroadcaster:
    """Fans snapshots (or a terminal failure) out to every live subscription."""

    def __init__(self) -> None:
        self._subscriptions: set[QueueSubscription] = set()
        self._lock = asyncio.Lock()

    async def attach(
        self,
        on_change: SnapshotHandler,
        on_error: ErrorHandler,
        initial: Optional[list[Milestone]] = None,
    ) -> QueueSubscription:
        subscription = QueueSubscription(self, on_change, on_error)
        if initial is not None:
            subscription.push(list(initial))
        async with self._lock:
            self._subscriptions.add(subscription)
        return subscription

    async def detach(self, subscription: QueueSubscription) -> None:
        async with self._lock:
            self._subscriptions.discard(subscription)

    async def publish(self, snapshot: list[Milestone]) -> None:
        async with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.push(list(snapshot))

    async def fail(self, error: Exception) -> None:
        """Deliver a terminal error; affected subscriptions stop afterwards."""
        async with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.push(_Failure(error))

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)
