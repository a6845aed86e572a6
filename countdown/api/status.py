"""
Engine status endpoints.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from countdown.api.deps import SyncEngine
from countdown.models.enums import EngineState
from countdown.services.sync_engine import MilestoneSyncEngine

router = APIRouter()

RETRY_SETTLE_TIMEOUT_SECONDS = 5.0


class EngineStatus(BaseModel):
    state: EngineState
    error: Optional[str] = None
    milestone_count: int = 0


def _status(engine: MilestoneSyncEngine) -> EngineStatus:
    return EngineStatus(
        state=engine.state,
        error=engine.error,
        milestone_count=len(engine.milestones),
    )


@router.get("", response_model=EngineStatus)
async def get_status(engine: SyncEngine) -> EngineStatus:
    return _status(engine)


@router.post("/retry", response_model=EngineStatus)
async def retry_connection(engine: SyncEngine) -> EngineStatus:
    """Full re-initialization of the store subscription."""
    await engine.retry()
    await engine.wait_until_settled(timeout=RETRY_SETTLE_TIMEOUT_SECONDS)
    return _status(engine)
