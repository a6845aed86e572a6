"""
Shared fixtures: in-memory fakes for the store and the local cache, and
in-memory SQLite for the real backends.
"""

import asyncio
from typing import Any, Optional
from uuid import uuid4

import pytest

from countdown.core.exceptions import ConnectivityError, NotFoundError
from countdown.infrastructure.broadcast import SnapshotBroadcaster
from countdown.interfaces.local_cache import ILocalCache
from countdown.interfaces.milestone_store import (
    ErrorHandler,
    IMilestoneStore,
    ISubscription,
    SnapshotHandler,
)
from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate


class InMemoryMilestoneStore(IMilestoneStore):
    """Fake remote store. Failures are switched on per operation."""

    def __init__(self) -> None:
        self._docs: dict[str, Milestone] = {}
        self._broadcaster = SnapshotBroadcaster()
        self.create_calls = 0
        self.fail_subscribe = False
        self.fail_writes = False
        self.fail_create_at: Optional[int] = None  # 1-based create call that fails

    def _snapshot(self) -> list[Milestone]:
        return sorted(self._docs.values(), key=lambda m: m.target_time)

    async def subscribe(self, on_change: SnapshotHandler, on_error: ErrorHandler) -> ISubscription:
        if self.fail_subscribe:
            raise ConnectivityError("permission denied")
        return await self._broadcaster.attach(on_change, on_error, self._snapshot())

    async def break_subscriptions(self) -> None:
        await self._broadcaster.fail(ConnectivityError("stream closed"))

    async def list(self) -> list[Milestone]:
        return self._snapshot()

    async def get(self, milestone_id: str) -> Optional[Milestone]:
        return self._docs.get(milestone_id)

    async def create(self, milestone: MilestoneCreate) -> Milestone:
        self.create_calls += 1
        if self.fail_writes or self.fail_create_at == self.create_calls:
            raise ConnectivityError("write rejected")
        created = Milestone(id=str(uuid4()), **milestone.model_dump())
        self._docs[created.id] = created
        await self._broadcaster.publish(self._snapshot())
        return created

    async def update(self, milestone_id: str, update: MilestoneUpdate) -> Milestone:
        if self.fail_writes:
            raise ConnectivityError("write rejected")
        current = self._docs.get(milestone_id)
        if current is None:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        updated = current.model_copy(update=update.model_dump(exclude_unset=True))
        self._docs[milestone_id] = updated
        await self._broadcaster.publish(self._snapshot())
        return updated

    async def delete(self, milestone_id: str) -> bool:
        if self.fail_writes:
            raise ConnectivityError("write rejected")
        if self._docs.pop(milestone_id, None) is None:
            return False
        await self._broadcaster.publish(self._snapshot())
        return True


class InMemoryLocalCache(ILocalCache):
    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self.values: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Optional[Any]:
        return self.values.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> bool:
        return self.values.pop(key, None) is not None


async def settle() -> None:
    """Let subscription pump tasks deliver whatever is queued."""
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def fake_store() -> InMemoryMilestoneStore:
    return InMemoryMilestoneStore()


@pytest.fixture
def fake_cache() -> InMemoryLocalCache:
    return InMemoryLocalCache()


@pytest.fixture
async def session_factory():
    """In-memory SQLite session factory with all tables created."""
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
    from sqlalchemy.orm import sessionmaker

    from countdown.infrastructure.local.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
