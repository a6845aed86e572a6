"""
Import/export of milestone backups.

Export wraps the current set as {"milestones": [...]}. Import accepts that
document or a bare array; anything else is rejected before any write.
Accepted records are created one at a time with no rollback, so a failure on
record N leaves records 1..N-1 committed.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional, Sequence

from countdown.core.exceptions import ConnectivityError, CountdownError, ValidationError
from countdown.core.logger import setup_logger
from countdown.interfaces.milestone_store import IMilestoneStore
from countdown.models.milestone import Milestone
from countdown.models.transfer import ExportDocument, ImportResult
from countdown.services.normalizer import normalize, to_create

logger = setup_logger(__name__)

CONTAINER_FIELD = "milestones"


def export_document(milestones: Sequence[Milestone]) -> dict[str, Any]:
    """Serialize the set as the portable backup document."""
    return ExportDocument(milestones=list(milestones)).model_dump(mode="json", by_alias=True)


def export_bytes(milestones: Sequence[Milestone]) -> bytes:
    """Pretty-printed JSON backup, ready to be offered as a download."""
    return json.dumps(export_document(milestones), indent=2, ensure_ascii=False).encode("utf-8")


def parse_import_payload(raw: bytes | str) -> list[Any]:
    """
    Extract the list of milestone-like records from a backup file.

    Raises:
        ValidationError: Undecodable bytes, invalid JSON, or an unsupported shape
    """
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, (bytes, bytearray)) else raw
        parsed = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("The file is not a valid backup (not JSON)", details=str(e)) from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get(CONTAINER_FIELD), list):
        return parsed[CONTAINER_FIELD]
    raise ValidationError(
        "The file is not a valid backup: expected a list of milestones "
        f'or an object with a "{CONTAINER_FIELD}" list'
    )


class TransferService:
    """Writes imported milestones through the store."""

    def __init__(self, store: IMilestoneStore):
        self._store = store

    async def import_bytes(self, raw: bytes | str, now: Optional[datetime] = None) -> ImportResult:
        """
        Validate, normalize and create every record in a backup file.

        Raises:
            ValidationError: The payload shape was rejected; nothing was written
            ConnectivityError: A create failed; earlier records stay committed
        """
        records = parse_import_payload(raw)
        normalized = [normalize(record, now=now) for record in records]

        imported = 0
        for milestone in normalized:
            try:
                await self._store.create(to_create(milestone))
            except CountdownError as e:
                logger.error(
                    f"Import stopped after {imported} of {len(normalized)} milestones: {e}"
                )
                raise ConnectivityError(
                    f"Import failed after {imported} of {len(normalized)} milestones",
                    details={"imported": imported, "total": len(normalized)},
                ) from e
            imported += 1

        logger.info(f"Imported {imported} milestones")
        return ImportResult(imported=imported)
