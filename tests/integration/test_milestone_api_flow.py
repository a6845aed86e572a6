"""
Integration tests for the HTTP surface over a live sync engine.
"""

from datetime import timedelta

import httpx
import pytest

from conftest import InMemoryLocalCache, settle
from countdown.api import deps
from countdown.services.migration_service import MigrationCoordinator
from countdown.services.preferences_service import PreferencesService
from countdown.services.sync_engine import MilestoneSyncEngine
from countdown.services.transfer_service import TransferService
from countdown.utils.datetime_utils import now_utc, to_iso
from main import create_app


@pytest.fixture
async def client(fake_store):
    """App wired to in-memory fakes; the engine is started by hand (no lifespan)."""
    cache = InMemoryLocalCache()
    migration = MigrationCoordinator(
        local_cache=cache,
        store=fake_store,
        sentinel_key="remote_migrated_v1",
        milestones_key="milestones_v1",
    )
    engine = MilestoneSyncEngine(store=fake_store, migration=migration, timezone="UTC")

    app = create_app()
    app.dependency_overrides[deps.get_sync_engine] = lambda: engine
    app.dependency_overrides[deps.get_migration_coordinator] = lambda: migration
    app.dependency_overrides[deps.get_transfer_service] = lambda: TransferService(fake_store)
    app.dependency_overrides[deps.get_preferences_service] = lambda: PreferencesService(
        cache, theme_key="theme_pref_v1"
    )

    await engine.start()
    await engine.migration_task
    await settle()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    await engine.stop()


def _payload(title: str, seconds: int) -> dict:
    return {
        "title": title,
        "targetTime": to_iso(now_utc() + timedelta(seconds=seconds)),
        "icon": "flag",
    }


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_toggle_and_focus(client):
    """Completing the active milestone moves focus to the next one."""
    first = await client.post("/api/milestones", json=_payload("first", 3600))
    second = await client.post("/api/milestones", json=_payload("second", 7200))
    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["targetTime"]
    await settle()

    focus = (await client.get("/api/timeline/focus")).json()
    assert focus["active"]["milestone"]["title"] == "first"

    toggled = await client.post(f"/api/milestones/{first.json()['id']}/toggle")
    assert toggled.status_code == 200
    assert toggled.json()["status"] == "completed"
    await settle()

    focus = (await client.get("/api/timeline/focus")).json()
    assert focus["active"]["milestone"]["title"] == "second"

    timeline = (await client.get("/api/timeline")).json()
    assert [e["milestone"]["title"] for e in timeline["entries"]] == ["first", "second"]
    assert timeline["aggregate"]["completed"] == 1


@pytest.mark.asyncio
async def test_invalid_create_is_422(client):
    response = await client.post("/api/milestones", json={"title": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_replace_and_delete(client):
    created = (await client.post("/api/milestones", json=_payload("draft", 3600))).json()
    await settle()

    replaced = await client.put(f"/api/milestones/{created['id']}", json=_payload("final", 7200))
    assert replaced.status_code == 200
    assert replaced.json()["createdAt"] == created["createdAt"]

    assert (await client.delete(f"/api/milestones/{created['id']}")).status_code == 204
    await settle()
    assert (await client.get("/api/milestones")).json() == []
    assert (await client.delete(f"/api/milestones/{created['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_write_failure_is_502(client, fake_store):
    fake_store.fail_writes = True
    response = await client.post("/api/milestones", json=_payload("x", 60))
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_import_then_export(client):
    body = b'{"milestones": [{"title": "Imported", "datetimeISO": "2030-01-01T00:00:00Z"}]}'

    response = await client.post("/api/transfer/import", content=body)
    assert response.status_code == 200
    assert response.json() == {"imported": 1}
    await settle()

    exported = await client.get("/api/transfer/export")
    assert exported.status_code == 200
    assert "attachment" in exported.headers["content-disposition"]
    milestones = exported.json()["milestones"]
    assert [m["title"] for m in milestones] == ["Imported"]
    assert milestones[0]["targetTime"] == "2030-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_import_rejects_bare_number(client):
    response = await client.post("/api/transfer/import", content=b"42")
    assert response.status_code == 400
    assert (await client.get("/api/milestones")).json() == []


@pytest.mark.asyncio
async def test_theme_and_migration_ledger(client):
    assert (await client.get("/api/settings/theme")).json() == {"theme": "system"}
    assert (await client.put("/api/settings/theme", json={"theme": "dark"})).status_code == 200
    assert (await client.get("/api/settings/theme")).json() == {"theme": "dark"}

    ledger = (await client.get("/api/settings/migration")).json()
    assert ledger["migrated"] is True
    assert ledger["recordCount"] == 0


@pytest.mark.asyncio
async def test_errored_reads_are_503_until_retry(client, fake_store):
    await fake_store.break_subscriptions()
    await settle()

    status = (await client.get("/api/status")).json()
    assert status["state"] == "errored"
    assert (await client.get("/api/timeline")).status_code == 503

    retried = (await client.post("/api/status/retry")).json()
    assert retried["state"] == "ready"
    assert (await client.get("/api/timeline")).status_code == 200
