from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from conftest import InMemoryLocalCache, settle
from countdown.api import settings as settings_api
from countdown.api import status as status_api
from countdown.api.deps import require_ready
from countdown.api.milestones import (
    create_milestone,
    delete_milestone,
    list_milestones,
    replace_milestone,
    toggle_milestone,
)
from countdown.api.transfer import export_milestones, import_milestones
from countdown.core.exceptions import ConnectivityError, NotFoundError, ValidationError
from countdown.models.enums import EngineState, MilestoneStatus, ThemeMode
from countdown.models.milestone import MilestoneCreate
from countdown.models.transfer import ImportResult
from countdown.services.preferences_service import PreferencesService
from countdown.services.sync_engine import MilestoneSyncEngine
from countdown.utils.datetime_utils import now_utc, to_iso


def _fields(title: str, days: int = 1) -> MilestoneCreate:
    return MilestoneCreate(title=title, target_time=to_iso(now_utc() + timedelta(days=days)))


async def _ready_engine(store) -> MilestoneSyncEngine:
    engine = MilestoneSyncEngine(store=store, timezone="UTC")
    await engine.start()
    await settle()
    return engine


def test_require_ready_rejects_loading_and_errored() -> None:
    engine = MagicMock()
    engine.state = EngineState.LOADING
    with pytest.raises(HTTPException) as exc_info:
        require_ready(engine)
    assert exc_info.value.status_code == 503

    engine.state = EngineState.ERRORED
    engine.error = "store unreachable"
    with pytest.raises(HTTPException) as exc_info:
        require_ready(engine)
    assert exc_info.value.detail == "store unreachable"

    engine.state = EngineState.READY
    assert require_ready(engine) is engine


@pytest.mark.asyncio
async def test_create_then_list_in_timeline_order(fake_store) -> None:
    engine = await _ready_engine(fake_store)

    await create_milestone(_fields("later", days=5), engine)
    await create_milestone(_fields("sooner", days=2), engine)
    await settle()

    result = await list_milestones(engine)

    assert [m.title for m in result] == ["sooner", "later"]
    await engine.stop()


@pytest.mark.asyncio
async def test_create_maps_connectivity_to_502() -> None:
    engine = AsyncMock()
    engine.save.side_effect = ConnectivityError("write rejected")

    with pytest.raises(HTTPException) as exc_info:
        await create_milestone(_fields("x"), engine)

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_replace_unknown_id_is_404(fake_store) -> None:
    engine = await _ready_engine(fake_store)

    with pytest.raises(HTTPException) as exc_info:
        await replace_milestone("missing", _fields("x"), engine)

    assert exc_info.value.status_code == 404
    assert fake_store.create_calls == 0
    await engine.stop()


@pytest.mark.asyncio
async def test_replace_existing(fake_store) -> None:
    engine = await _ready_engine(fake_store)
    created = await create_milestone(_fields("draft"), engine)
    await settle()

    replaced = await replace_milestone(created.id, _fields("final", days=3), engine)

    assert replaced.id == created.id
    assert replaced.title == "final"
    await engine.stop()


@pytest.mark.asyncio
async def test_toggle_errors() -> None:
    engine = AsyncMock()
    engine.toggle_complete.side_effect = NotFoundError("Milestone x not found")
    with pytest.raises(HTTPException) as exc_info:
        await toggle_milestone("x", engine)
    assert exc_info.value.status_code == 404

    engine.toggle_complete.side_effect = ConnectivityError("write rejected")
    with pytest.raises(HTTPException) as exc_info:
        await toggle_milestone("x", engine)
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_toggle_returns_store_confirmation(fake_store) -> None:
    engine = await _ready_engine(fake_store)
    created = await create_milestone(_fields("a"), engine)
    await settle()

    toggled = await toggle_milestone(created.id, engine)

    assert toggled.status == MilestoneStatus.COMPLETED
    await engine.stop()


@pytest.mark.asyncio
async def test_delete_missing_is_404() -> None:
    engine = AsyncMock()
    engine.delete.return_value = False

    with pytest.raises(HTTPException) as exc_info:
        await delete_milestone("missing", engine)

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_export_sets_download_headers(fake_store) -> None:
    engine = await _ready_engine(fake_store)
    await create_milestone(_fields("a"), engine)
    await settle()

    response = await export_milestones(engine)

    assert response.media_type == "application/json"
    assert "attachment" in response.headers["content-disposition"]
    assert b'"milestones"' in response.body
    await engine.stop()


@pytest.mark.asyncio
async def test_import_maps_errors() -> None:
    request = AsyncMock()
    request.body.return_value = b"42"
    transfer = AsyncMock()

    transfer.import_bytes.side_effect = ValidationError("bad shape")
    with pytest.raises(HTTPException) as exc_info:
        await import_milestones(request, transfer)
    assert exc_info.value.status_code == 400

    transfer.import_bytes.side_effect = ConnectivityError(
        "Import failed after 1 of 3 milestones", details={"imported": 1, "total": 3}
    )
    with pytest.raises(HTTPException) as exc_info:
        await import_milestones(request, transfer)
    assert exc_info.value.status_code == 502
    assert exc_info.value.detail["imported"] == 1


@pytest.mark.asyncio
async def test_import_success() -> None:
    request = AsyncMock()
    request.body.return_value = b"[]"
    transfer = AsyncMock()
    transfer.import_bytes.return_value = ImportResult(imported=0)

    result = await import_milestones(request, transfer)

    assert result.imported == 0
    transfer.import_bytes.assert_awaited_once_with(b"[]")


@pytest.mark.asyncio
async def test_theme_endpoints() -> None:
    preferences = PreferencesService(InMemoryLocalCache(), theme_key="theme")

    assert (await settings_api.get_theme(preferences)).theme == ThemeMode.SYSTEM
    await settings_api.set_theme(settings_api.ThemePreference(theme=ThemeMode.LIGHT), preferences)
    assert (await settings_api.get_theme(preferences)).theme == ThemeMode.LIGHT


@pytest.mark.asyncio
async def test_retry_endpoint_reports_recovered_state(fake_store) -> None:
    fake_store.fail_subscribe = True
    engine = MilestoneSyncEngine(store=fake_store, timezone="UTC")
    await engine.start()
    assert (await status_api.get_status(engine)).state == EngineState.ERRORED

    fake_store.fail_subscribe = False
    result = await status_api.retry_connection(engine)

    assert result.state == EngineState.READY
    assert result.error is None
    await engine.stop()
