"""
Milestone API endpoints.

Provides CRUD operations for milestones. Writes are confirmed by the store;
the returned set only reflects them once the subscription pushes.
"""

from fastapi import APIRouter, HTTPException, status

from countdown.api.deps import ReadyEngine, SyncEngine
from countdown.core.exceptions import ConnectivityError, NotFoundError
from countdown.models.milestone import Milestone, MilestoneCreate
from countdown.services.timeline_service import sort_timeline

router = APIRouter()


def _store_unavailable(exc: ConnectivityError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("", response_model=list[Milestone])
async def list_milestones(engine: ReadyEngine) -> list[Milestone]:
    """List milestones in timeline order."""
    return sort_timeline(engine.milestones, engine.timezone)


@router.post("", response_model=Milestone, status_code=status.HTTP_201_CREATED)
async def create_milestone(milestone: MilestoneCreate, engine: SyncEngine) -> Milestone:
    """Create a new milestone."""
    try:
        return await engine.save(milestone)
    except ConnectivityError as exc:
        raise _store_unavailable(exc) from exc


@router.put("/{milestone_id}", response_model=Milestone)
async def replace_milestone(
    milestone_id: str,
    milestone: MilestoneCreate,
    engine: SyncEngine,
) -> Milestone:
    """Replace every editable field of a milestone."""
    if not any(m.id == milestone_id for m in engine.milestones):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Milestone {milestone_id} not found",
        )
    try:
        return await engine.save(milestone, milestone_id=milestone_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConnectivityError as exc:
        raise _store_unavailable(exc) from exc


@router.post("/{milestone_id}/toggle", response_model=Milestone)
async def toggle_milestone(milestone_id: str, engine: SyncEngine) -> Milestone:
    """Flip a milestone between upcoming and completed."""
    try:
        return await engine.toggle_complete(milestone_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConnectivityError as exc:
        raise _store_unavailable(exc) from exc


@router.delete("/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_milestone(milestone_id: str, engine: SyncEngine):
    """Delete a milestone."""
    try:
        deleted = await engine.delete(milestone_id)
    except ConnectivityError as exc:
        raise _store_unavailable(exc) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Milestone {milestone_id} not found",
        )
