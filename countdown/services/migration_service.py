"""
One-shot migration of locally cached milestones into the remote store.

The ledger under the sentinel key is written after every attempt, whatever
the outcome, so the migration runs at most once per device. Records whose
creation failed are not retried; the ledger keeps the counts.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Optional

from countdown.core.config import get_settings
from countdown.core.exceptions import CountdownError, MigrationError
from countdown.core.logger import setup_logger
from countdown.interfaces.local_cache import ILocalCache
from countdown.interfaces.milestone_store import IMilestoneStore
from countdown.models.migration import MigrationLedger
from countdown.services.normalizer import normalize, to_create
from countdown.utils.datetime_utils import now_utc, to_iso

logger = setup_logger(__name__)


class MigrationCoordinator:
    """
    Moves the legacy local milestone list into the remote store once.

    Features:
    - Ledger-gated: a present ledger (or legacy `true` flag) means no work
    - Each record is created independently; one failure does not stop the rest
    - Ledger written unconditionally after the attempt
    """

    def __init__(
        self,
        local_cache: ILocalCache,
        store: IMilestoneStore,
        sentinel_key: Optional[str] = None,
        milestones_key: Optional[str] = None,
    ):
        settings = get_settings()
        self._local_cache = local_cache
        self._store = store
        self._sentinel_key = sentinel_key or settings.MIGRATION_SENTINEL_KEY
        self._milestones_key = milestones_key or settings.LOCAL_MILESTONES_KEY
        self._lock = asyncio.Lock()

    @staticmethod
    def _parse_ledger(raw: Any) -> Optional[MigrationLedger]:
        """Read whatever is stored under the sentinel key."""
        if raw is None or raw is False:
            return None
        if isinstance(raw, dict):
            try:
                return MigrationLedger.model_validate(raw)
            except ValueError:
                logger.warning("Unreadable migration ledger, treating as migrated")
                return MigrationLedger()
        # Legacy bare flag ("true", True, ...)
        return MigrationLedger()

    async def get_ledger(self) -> Optional[MigrationLedger]:
        return self._parse_ledger(await self._local_cache.get(self._sentinel_key))

    async def run(self, now: Optional[datetime] = None) -> MigrationLedger:
        """
        Run the migration if it has never been attempted on this device.

        Returns:
            The existing ledger when already migrated, else the new one
        """
        async with self._lock:
            existing = await self.get_ledger()
            if existing is not None and existing.migrated:
                logger.debug("Migration ledger present, skipping migration")
                return existing

            succeeded = 0
            failed = 0
            records: list[Any] = []
            try:
                records = await self._load_local_records()
                if records:
                    logger.info(f"Migrating {len(records)} local milestones to the remote store...")
                for record in records:
                    try:
                        await self._store.create(to_create(normalize(record)))
                        succeeded += 1
                    except Exception as e:
                        failed += 1
                        logger.error(f"Failed to migrate milestone {record.get('id', '?')}: {e}")
                if failed:
                    raise MigrationError(
                        f"{failed} of {len(records)} milestones were not migrated",
                        succeeded=succeeded,
                        failed=failed,
                    )
            except CountdownError as e:
                logger.error(f"Migration error: {e}")
            finally:
                # Always written, even when the attempt raised
                ledger = MigrationLedger(
                    migrated=True,
                    attempted_at=to_iso(now or now_utc()),
                    record_count=len(records),
                    succeeded_count=succeeded,
                    failed_count=failed,
                )
                await self._local_cache.set(self._sentinel_key, ledger.model_dump(by_alias=True))

            logger.info(
                f"Migration completed: {succeeded} migrated, {failed} failed, "
                f"{len(records)} found in local cache"
            )
            return ledger

    async def _load_local_records(self) -> list[dict[str, Any]]:
        raw = await self._local_cache.get(self._milestones_key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise MigrationError(f"Local cache key {self._milestones_key} does not hold a list")
        return [item for item in raw if isinstance(item, dict)]
