"""
SQLite implementation of the milestone store.

Stands in for the remote document store when running locally: every
committed write is followed by a fresh snapshot pushed to subscribers.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from countdown.core.exceptions import ConnectivityError, NotFoundError
from countdown.core.logger import setup_logger
from countdown.infrastructure.broadcast import SnapshotBroadcaster
from countdown.infrastructure.local.database import MilestoneORM, get_session_factory
from countdown.interfaces.milestone_store import (
    ErrorHandler,
    IMilestoneStore,
    ISubscription,
    SnapshotHandler,
)
from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from countdown.services.normalizer import normalize

logger = setup_logger(__name__)

NULLABLE_FIELDS = {"location"}


class SqliteMilestoneStore(IMilestoneStore):
    """SQLite implementation of milestone store."""

    def __init__(self, session_factory=None):
        """
        Initialize store.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()
        self._broadcaster = SnapshotBroadcaster()

    def _orm_to_model(self, orm: MilestoneORM) -> Milestone:
        """Convert ORM object to Pydantic model, repairing garbled rows."""
        return normalize(
            {
                "id": orm.id,
                "title": orm.title,
                "description": orm.description,
                "location": orm.location,
                "targetTime": orm.target_time,
                "icon": orm.icon,
                "imageRef": orm.image_ref,
                "status": orm.status,
                "createdAt": orm.created_at,
            },
            # Stable fallback for an unparsable createdAt
            now=orm.inserted_at,
        )

    async def _publish(self) -> None:
        """Push the current contents. The write before it is already committed, so failures only log."""
        try:
            snapshot = await self.list()
        except ConnectivityError as e:
            logger.error(f"Failed to publish milestone snapshot: {e}")
            return
        await self._broadcaster.publish(snapshot)

    async def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> ISubscription:
        """Subscribe to snapshots. The current contents are pushed first."""
        initial = await self.list()
        return await self._broadcaster.attach(on_change, on_error, initial)

    async def list(self) -> list[Milestone]:
        """List all milestones, ordered by target time."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MilestoneORM).order_by(MilestoneORM.target_time, MilestoneORM.inserted_at)
                )
                return [self._orm_to_model(orm) for orm in result.scalars().all()]
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to list milestones: {e}") from e

    async def get(self, milestone_id: str) -> Optional[Milestone]:
        """Get a milestone by ID."""
        try:
            async with self._session_factory() as session:
                orm = await session.get(MilestoneORM, milestone_id)
                return self._orm_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to read milestone {milestone_id}: {e}") from e

    async def create(self, milestone: MilestoneCreate) -> Milestone:
        """Create a new milestone."""
        try:
            async with self._session_factory() as session:
                orm = MilestoneORM(
                    id=str(uuid4()),
                    title=milestone.title,
                    description=milestone.description,
                    location=milestone.location,
                    target_time=milestone.target_time,
                    icon=milestone.icon.value,
                    image_ref=milestone.image_ref,
                    status=milestone.status.value,
                    created_at=milestone.created_at,
                )
                session.add(orm)
                await session.commit()
                await session.refresh(orm)
                created = self._orm_to_model(orm)
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to create milestone: {e}") from e
        await self._publish()
        return created

    async def update(self, milestone_id: str, update: MilestoneUpdate) -> Milestone:
        """Update a milestone."""
        try:
            async with self._session_factory() as session:
                orm = await session.get(MilestoneORM, milestone_id)
                if not orm:
                    raise NotFoundError(f"Milestone {milestone_id} not found")

                update_data = update.model_dump(exclude_unset=True)
                for field, value in update_data.items():
                    if value is None and field not in NULLABLE_FIELDS:
                        continue
                    if hasattr(value, "value"):
                        value = value.value
                    setattr(orm, field, value)

                await session.commit()
                await session.refresh(orm)
                updated = self._orm_to_model(orm)
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to update milestone {milestone_id}: {e}") from e
        await self._publish()
        return updated

    async def delete(self, milestone_id: str) -> bool:
        """Delete a milestone. Returns True if deleted, False if not found."""
        try:
            async with self._session_factory() as session:
                orm = await session.get(MilestoneORM, milestone_id)
                if not orm:
                    return False
                await session.delete(orm)
                await session.commit()
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to delete milestone {milestone_id}: {e}") from e
        await self._publish()
        return True
