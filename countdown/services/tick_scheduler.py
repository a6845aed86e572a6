"""
Tick scheduler for time-derived values.

A payload-free nudge every TICK_INTERVAL_SECONDS so consumers re-derive
countdowns and progress. Uses APScheduler for in-process scheduling.

The interval job only exists while somebody listens: it is added with the
first subscriber and removed with the last, so idle consumers leave no
timers behind.
"""

from __future__ import annotations

import itertools
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from countdown.core.config import get_settings
from countdown.core.logger import setup_logger

logger = setup_logger(__name__)

TICK_JOB_ID = "milestone_tick"

TickListener = Callable[[], None]


class TickScheduler:
    """Fixed-cadence tick fan-out backed by an AsyncIOScheduler interval job."""

    def __init__(self, interval_seconds: Optional[float] = None):
        self._interval = interval_seconds or get_settings().TICK_INTERVAL_SECONDS
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._listeners: dict[int, TickListener] = {}
        self._tokens = itertools.count()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def is_ticking(self) -> bool:
        """Whether the interval job is currently scheduled."""
        return self._scheduler is not None and self._scheduler.get_job(TICK_JOB_ID) is not None

    def start(self) -> None:
        """Start the underlying scheduler. Must be called from a running event loop."""
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info(f"Tick scheduler started ({self._interval}s cadence)")

    def shutdown(self) -> None:
        """Drop every listener and stop the scheduler."""
        self._listeners.clear()
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Tick scheduler stopped")
        self._scheduler = None

    def subscribe(self, listener: TickListener) -> Callable[[], None]:
        """
        Register a tick listener.

        Returns:
            Idempotent unsubscribe callable
        """
        token = next(self._tokens)
        self._listeners[token] = listener
        if len(self._listeners) == 1:
            self._add_job()

        def unsubscribe() -> None:
            if self._listeners.pop(token, None) is not None and not self._listeners:
                self._remove_job()

        return unsubscribe

    def _add_job(self) -> None:
        self.start()
        self._scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self._interval),
            id=TICK_JOB_ID,
            name="Milestone Tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def _remove_job(self) -> None:
        if self._scheduler is not None and self._scheduler.get_job(TICK_JOB_ID) is not None:
            self._scheduler.remove_job(TICK_JOB_ID)

    async def _tick(self) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener()
            except Exception:
                logger.exception("Tick listener raised")
