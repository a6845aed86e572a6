"""
Milestone normalization.

normalize() turns any partially populated record (an import row, a local
cache entry, a store document) into a valid Milestone. It never raises:
garbled fields fall back to defaults instead of rejecting the record.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from countdown.models.enums import MilestoneIcon, MilestoneStatus
from countdown.models.milestone import (
    DEFAULT_TITLE,
    FALLBACK_IMAGE_REF,
    Milestone,
    MilestoneCreate,
)
from countdown.utils.datetime_utils import now_utc, parse_timestamp, to_iso

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
LOCATION_MAX_LENGTH = 500

_id_lock = threading.Lock()
_last_id = 0


def generate_id() -> str:
    """Time-based id (epoch milliseconds), bumped when two land in the same millisecond."""
    global _last_id
    with _id_lock:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any, max_length: int) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    text = value if isinstance(value, str) else str(value)
    text = text.strip()
    return text[:max_length] if text else None


def _enum(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default


def _timestamp_text(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize(partial: Any, now: Optional[datetime] = None) -> Milestone:
    """
    Build a valid Milestone from a partially specified record.

    Defaults:
        id -> time-based id
        title -> "New milestone"
        icon / status -> flag / upcoming (also for values outside the enum)
        createdAt -> now (also when unparsable)
        imageRef -> fallback image
        targetTime -> "" (kept; excluded from ordering at use)
    """
    record: Mapping[str, Any] = partial if isinstance(partial, Mapping) else {}
    created_now = to_iso(now or now_utc())

    raw_id = _text(record.get("id"), 200)
    created_at = _timestamp_text(_pick(record, "createdAt", "created_at"))
    if created_at is None or parse_timestamp(created_at) is None:
        created_at = created_now

    return Milestone(
        id=raw_id or generate_id(),
        title=_text(record.get("title"), TITLE_MAX_LENGTH) or DEFAULT_TITLE,
        description=_text(record.get("description"), DESCRIPTION_MAX_LENGTH) or "",
        location=_text(record.get("location"), LOCATION_MAX_LENGTH),
        target_time=_timestamp_text(_pick(record, "targetTime", "datetimeISO", "target_time")) or "",
        icon=_enum(MilestoneIcon, record.get("icon"), MilestoneIcon.FLAG),
        image_ref=_text(_pick(record, "imageRef", "imageUrl", "image_ref"), 2000) or FALLBACK_IMAGE_REF,
        status=_enum(MilestoneStatus, record.get("status"), MilestoneStatus.UPCOMING),
        created_at=created_at,
    )


def to_create(milestone: Milestone) -> MilestoneCreate:
    """Drop the identifier so the target store can assign its own."""
    return MilestoneCreate.model_validate(milestone.model_dump(exclude={"id"}))
