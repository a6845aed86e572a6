"""
Unit tests for backup export/import.
"""

import json
from datetime import datetime, timezone

import pytest

from countdown.core.exceptions import ConnectivityError, ValidationError
from countdown.services.normalizer import normalize
from countdown.services.transfer_service import (
    TransferService,
    export_bytes,
    export_document,
    parse_import_payload,
)

NOW = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)


def _fields(milestone) -> tuple:
    return (
        milestone.title,
        milestone.description,
        milestone.location,
        milestone.target_time,
        milestone.icon,
        milestone.image_ref,
        milestone.status,
        milestone.created_at,
    )


class TestParseImportPayload:
    def test_accepts_container_document(self):
        assert parse_import_payload('{"milestones": [{"title": "a"}]}') == [{"title": "a"}]

    def test_accepts_bare_array(self):
        assert parse_import_payload(b'[{"title": "a"}, {"title": "b"}]') == [
            {"title": "a"},
            {"title": "b"},
        ]

    @pytest.mark.parametrize(
        "raw",
        ["42", '"text"', '{"items": []}', '{"milestones": {}}', "null", "not json", b"\xff\xfe\x00"],
    )
    def test_rejects_other_shapes(self, raw):
        with pytest.raises(ValidationError):
            parse_import_payload(raw)


class TestExport:
    def test_export_document_shape(self):
        milestones = [normalize({"id": "1", "title": "Launch", "targetTime": "2026-03-01T09:00:00Z"}, now=NOW)]
        document = export_document(milestones)
        assert list(document) == ["milestones"]
        assert document["milestones"][0]["id"] == "1"
        assert document["milestones"][0]["targetTime"] == "2026-03-01T09:00:00Z"

    def test_export_bytes_is_indented_json(self):
        body = export_bytes([])
        assert json.loads(body) == {"milestones": []}
        assert b"\n  " in body


@pytest.mark.asyncio
async def test_bare_number_leaves_store_unchanged(fake_store):
    service = TransferService(fake_store)

    with pytest.raises(ValidationError):
        await service.import_bytes(b"42", now=NOW)

    assert fake_store.create_calls == 0
    assert await fake_store.list() == []


@pytest.mark.asyncio
async def test_export_then_import_preserves_fields(fake_store):
    """Re-importing an export yields the same field tuples under new ids."""
    originals = [
        normalize(
            {
                "id": "a",
                "title": "Launch",
                "description": "Ship it",
                "location": "Berlin",
                "targetTime": "2026-03-01T09:00:00Z",
                "icon": "task_alt",
                "status": "completed",
                "createdAt": "2026-01-01T00:00:00Z",
            },
            now=NOW,
        ),
        normalize({"id": "b", "title": "Review", "targetTime": "2026-04-01T09:00:00Z"}, now=NOW),
    ]

    result = await TransferService(fake_store).import_bytes(export_bytes(originals), now=NOW)

    assert result.imported == 2
    imported = await fake_store.list()
    assert sorted(_fields(m) for m in imported) == sorted(_fields(m) for m in originals)
    assert {m.id for m in imported}.isdisjoint({"a", "b"})


@pytest.mark.asyncio
async def test_import_normalizes_partial_records(fake_store):
    result = await TransferService(fake_store).import_bytes(
        json.dumps([{"title": "Only a title"}, {}]), now=NOW
    )

    assert result.imported == 2
    titles = sorted(m.title for m in await fake_store.list())
    assert titles == ["New milestone", "Only a title"]


@pytest.mark.asyncio
async def test_failure_keeps_earlier_records(fake_store):
    """No rollback: records before the failing one stay committed."""
    fake_store.fail_create_at = 3
    payload = json.dumps({"milestones": [{"title": f"m{i}"} for i in range(5)]})

    with pytest.raises(ConnectivityError) as exc_info:
        await TransferService(fake_store).import_bytes(payload, now=NOW)

    assert exc_info.value.details == {"imported": 2, "total": 5}
    assert len(await fake_store.list()) == 2
