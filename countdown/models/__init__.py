"""Pydantic models (schemas) for the application."""

from countdown.models.enums import EngineState, MilestoneIcon, MilestoneStatus, ThemeMode
from countdown.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from countdown.models.migration import MigrationLedger
from countdown.models.timeline import (
    AggregateProgress,
    Countdown,
    FocusView,
    TimelineEntry,
    TimelineView,
)
from countdown.models.transfer import ExportDocument, ImportResult

__all__ = [
    # Enums
    "MilestoneStatus",
    "MilestoneIcon",
    "ThemeMode",
    "EngineState",
    # Milestone
    "Milestone",
    "MilestoneCreate",
    "MilestoneUpdate",
    # Derived
    "Countdown",
    "TimelineEntry",
    "AggregateProgress",
    "TimelineView",
    "FocusView",
    # Persistence / transfer
    "MigrationLedger",
    "ExportDocument",
    "ImportResult",
]
