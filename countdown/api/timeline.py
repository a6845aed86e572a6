import asyncio
from typing import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from countdown.api.deps import ReadyEngine, SyncEngine, Ticks
from countdown.models.timeline import FocusView, TimelineView

router = APIRouter()


@router.get("", response_model=TimelineView)
async def get_timeline(engine: ReadyEngine) -> TimelineView:
    return engine.timeline_view()


@router.get("/focus", response_model=FocusView)
async def get_focus(engine: ReadyEngine) -> FocusView:
    return engine.focus_view()


@router.get("/stream")
async def stream_timeline(
    engine: SyncEngine,
    ticks: Ticks,
    request: Request,
) -> StreamingResponse:
    async def event_generator() -> AsyncGenerator[str, None]:
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=1)

        def nudge() -> None:
            # Ticks carry no payload; one pending nudge is enough
            if queue.empty():
                queue.put_nowait("tick")

        # Subscribed only once the response is actually streamed
        unsubscribe_ticks = ticks.subscribe(nudge)
        remove_listener = engine.add_listener(nudge)
        try:
            yield f'data: {{"type":"connected","state":"{engine.state.value}"}}\n\n'
            while True:
                if await request.is_disconnected():
                    break
                try:
                    await asyncio.wait_for(queue.get(), timeout=15)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                view = engine.timeline_view()
                yield f"data: {view.model_dump_json(by_alias=True)}\n\n"
        finally:
            unsubscribe_ticks()
            remove_listener()

    return StreamingResponse(event_generator(), media_type="text/event-stream")
