"""
Settings API endpoints (theme preference, migration ledger).
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from countdown.api.deps import Migration, Preferences
from countdown.models.enums import ThemeMode
from countdown.models.migration import MigrationLedger

router = APIRouter()


class ThemePreference(BaseModel):
    theme: ThemeMode


@router.get("/theme", response_model=ThemePreference)
async def get_theme(preferences: Preferences) -> ThemePreference:
    return ThemePreference(theme=await preferences.get_theme())


@router.put("/theme", response_model=ThemePreference)
async def set_theme(body: ThemePreference, preferences: Preferences) -> ThemePreference:
    return ThemePreference(theme=await preferences.set_theme(body.theme))


@router.get("/migration", response_model=Optional[MigrationLedger])
async def get_migration_ledger(migration: Migration) -> Optional[MigrationLedger]:
    """The one-shot migration ledger, or null if it has not been attempted yet."""
    return await migration.get_ledger()
