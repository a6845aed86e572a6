"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
Services receive their store handles explicitly; only this module caches them.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status

from countdown.core.config import get_settings
from countdown.interfaces.local_cache import ILocalCache
from countdown.interfaces.milestone_store import IMilestoneStore
from countdown.models.enums import EngineState
from countdown.services.migration_service import MigrationCoordinator
from countdown.services.preferences_service import PreferencesService
from countdown.services.sync_engine import MilestoneSyncEngine
from countdown.services.tick_scheduler import TickScheduler
from countdown.services.transfer_service import TransferService


# ===========================================
# Infrastructure Dependencies
# ===========================================


@lru_cache()
def get_db_session_factory():
    """Shared session factory for the local SQLite database."""
    from countdown.infrastructure.local.database import get_session_factory

    return get_session_factory()


@lru_cache()
def get_local_cache() -> ILocalCache:
    """Get local cache instance (always device-local)."""
    from countdown.infrastructure.local.local_cache import SqliteLocalCache

    return SqliteLocalCache(get_db_session_factory())


@lru_cache()
def get_milestone_store() -> IMilestoneStore:
    """Get milestone store instance."""
    settings = get_settings()
    if settings.is_gcp:
        from countdown.infrastructure.gcp.firestore_milestone_store import FirestoreMilestoneStore

        return FirestoreMilestoneStore()
    else:
        from countdown.infrastructure.local.milestone_store import SqliteMilestoneStore

        return SqliteMilestoneStore(get_db_session_factory())


# ===========================================
# Service Dependencies
# ===========================================


@lru_cache()
def get_migration_coordinator() -> MigrationCoordinator:
    """Get the migration coordinator (one lock per process)."""
    return MigrationCoordinator(local_cache=get_local_cache(), store=get_milestone_store())


@lru_cache()
def get_sync_engine() -> MilestoneSyncEngine:
    """Get the process-wide sync engine (started in the app lifespan)."""
    return MilestoneSyncEngine(store=get_milestone_store(), migration=get_migration_coordinator())


@lru_cache()
def get_tick_scheduler() -> TickScheduler:
    """Get the process-wide tick scheduler."""
    return TickScheduler()


def get_transfer_service() -> TransferService:
    return TransferService(get_milestone_store())


def get_preferences_service() -> PreferencesService:
    return PreferencesService(get_local_cache())


SyncEngine = Annotated[MilestoneSyncEngine, Depends(get_sync_engine)]
Migration = Annotated[MigrationCoordinator, Depends(get_migration_coordinator)]
Ticks = Annotated[TickScheduler, Depends(get_tick_scheduler)]
Transfer = Annotated[TransferService, Depends(get_transfer_service)]
Preferences = Annotated[PreferencesService, Depends(get_preferences_service)]


def require_ready(engine: SyncEngine) -> MilestoneSyncEngine:
    """Reject reads while the engine is still loading or has errored."""
    if engine.state == EngineState.ERRORED:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=engine.error or "Milestone store unavailable",
        )
    if engine.state == EngineState.LOADING:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Milestones are still loading",
        )
    return engine


ReadyEngine = Annotated[MilestoneSyncEngine, Depends(require_ready)]
