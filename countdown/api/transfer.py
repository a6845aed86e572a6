"""
Import/export API endpoints.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status

from countdown.api.deps import ReadyEngine, Transfer
from countdown.core.config import get_settings
from countdown.core.exceptions import ConnectivityError, ValidationError
from countdown.models.transfer import ImportResult
from countdown.services.timeline_service import sort_timeline
from countdown.services.transfer_service import export_bytes

router = APIRouter()


@router.get("/export")
async def export_milestones(engine: ReadyEngine) -> Response:
    """Download the current milestone set as a JSON backup."""
    settings = get_settings()
    body = export_bytes(sort_timeline(engine.milestones, engine.timezone))
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{settings.EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ImportResult)
async def import_milestones(request: Request, transfer: Transfer) -> ImportResult:
    """Import a backup file sent as the raw request body."""
    raw = await request.body()
    try:
        return await transfer.import_bytes(raw)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Could not import the file. Check that it is a valid backup.",
        ) from exc
    except ConnectivityError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": exc.message, **(exc.details or {})},
        ) from exc
