"""
Milestone sync engine.

Owns the in-memory milestone set, kept live by a store subscription, and the
Loading -> Ready / Errored lifecycle. Writes go straight to the store; the
in-memory set only changes when the store pushes a new snapshot.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional

from countdown.core.config import get_settings
from countdown.core.exceptions import CountdownError, NotFoundError
from countdown.core.logger import setup_logger
from countdown.interfaces.milestone_store import IMilestoneStore, ISubscription
from countdown.models.enums import EngineState, MilestoneStatus
from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from countdown.models.timeline import FocusView, TimelineView
from countdown.services.migration_service import MigrationCoordinator
from countdown.services.timeline_service import build_focus_view, build_timeline_view
from countdown.utils.datetime_utils import now_utc

logger = setup_logger(__name__)

ChangeListener = Callable[[], None]

CONNECTION_ERROR_MESSAGE = (
    "Could not reach the milestone store (connection or permission problem). Retry to reconnect."
)


class MilestoneSyncEngine:
    """
    Keeps the current milestone set in sync with the authoritative store.

    Lifecycle:
    - start(): subscribe (LOADING) and launch the one-shot migration in the background
    - first push -> READY; later pushes replace the set wholesale
    - subscription failure -> ERRORED until retry()
    """

    def __init__(
        self,
        store: IMilestoneStore,
        migration: Optional[MigrationCoordinator] = None,
        timezone: Optional[str] = None,
    ):
        self._store = store
        self._migration = migration
        self._timezone = timezone or get_settings().TIMEZONE
        self._state = EngineState.LOADING
        self._error: Optional[str] = None
        self._milestones: list[Milestone] = []
        self._subscription: Optional[ISubscription] = None
        self._migration_task: Optional[asyncio.Task] = None
        self._settled = asyncio.Event()
        self._listeners: list[ChangeListener] = []
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def milestones(self) -> list[Milestone]:
        return list(self._milestones)

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def migration_task(self) -> Optional[asyncio.Task]:
        return self._migration_task

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a callback fired after every snapshot or state change."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Milestone change listener raised")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the store and kick off the background migration."""
        if self._subscription is not None:
            return

        self._generation += 1
        generation = self._generation
        self._state = EngineState.LOADING
        self._error = None
        self._milestones = []
        self._settled = asyncio.Event()

        if self._migration is not None and (self._migration_task is None or self._migration_task.done()):
            self._migration_task = asyncio.create_task(self._run_migration_background())

        async def on_change(snapshot: list[Milestone]) -> None:
            if generation == self._generation:
                await self._handle_snapshot(snapshot)

        async def on_error(error: Exception) -> None:
            if generation == self._generation:
                await self._handle_error(error)

        try:
            self._subscription = await self._store.subscribe(on_change, on_error)
        except CountdownError as e:
            await self._handle_error(e)

    async def stop(self) -> None:
        """Release the subscription. In-flight writes and migration run to completion."""
        self._generation += 1
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await subscription.cancel()

    async def retry(self) -> None:
        """Full re-initialization; the only way out of ERRORED."""
        logger.info("Re-initializing milestone sync engine")
        await self.stop()
        await self.start()

    async def wait_until_settled(self, timeout: Optional[float] = None) -> EngineState:
        """Wait until the engine leaves LOADING (or timeout elapses)."""
        try:
            await asyncio.wait_for(self._settled.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self._state

    async def _handle_snapshot(self, snapshot: list[Milestone]) -> None:
        if self._state == EngineState.ERRORED:
            return
        self._milestones = list(snapshot)
        if self._state != EngineState.READY:
            logger.info(f"Milestone store ready ({len(snapshot)} milestones)")
        self._state = EngineState.READY
        self._settled.set()
        self._notify()

    async def _handle_error(self, error: Exception) -> None:
        logger.error(f"Milestone store subscription error: {error}")
        self._state = EngineState.ERRORED
        self._error = CONNECTION_ERROR_MESSAGE
        self._settled.set()
        if self._subscription is not None:
            subscription, self._subscription = self._subscription, None
            await subscription.cancel()
        self._notify()

    async def _run_migration_background(self) -> None:
        """Background wrapper for the migration with error handling."""
        try:
            await self._migration.run()
        except Exception as e:
            logger.error(f"Background migration failed: {e}")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _find(self, milestone_id: str) -> Optional[Milestone]:
        return next((m for m in self._milestones if m.id == milestone_id), None)

    async def toggle_complete(self, milestone_id: str) -> Milestone:
        """Flip completed <-> upcoming. Raises NotFoundError for ids not in the current set."""
        milestone = self._find(milestone_id)
        if milestone is None:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        new_status = (
            MilestoneStatus.UPCOMING
            if milestone.status == MilestoneStatus.COMPLETED
            else MilestoneStatus.COMPLETED
        )
        try:
            return await self._store.update(milestone_id, MilestoneUpdate(status=new_status))
        except CountdownError as e:
            logger.error(f"Error toggling completion of {milestone_id}: {e}")
            raise

    async def save(self, fields: MilestoneCreate, milestone_id: Optional[str] = None) -> Milestone:
        """
        Editor save: replace every field of an existing milestone, or create a new one.

        createdAt of an existing milestone is never overwritten.
        """
        try:
            if milestone_id and self._find(milestone_id) is not None:
                update = MilestoneUpdate.model_validate(fields.model_dump(exclude={"created_at"}))
                return await self._store.update(milestone_id, update)
            return await self._store.create(fields)
        except CountdownError as e:
            logger.error(f"Error saving milestone: {e}")
            raise

    async def delete(self, milestone_id: str) -> bool:
        try:
            return await self._store.delete(milestone_id)
        except CountdownError as e:
            logger.error(f"Error deleting milestone {milestone_id}: {e}")
            raise

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def timeline_view(self, now: Optional[datetime] = None) -> TimelineView:
        return build_timeline_view(self._milestones, now or now_utc(), self._timezone)

    def focus_view(self, now: Optional[datetime] = None) -> FocusView:
        return build_focus_view(self._milestones, now or now_utc(), self._timezone)
