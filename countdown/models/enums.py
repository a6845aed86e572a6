"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class MilestoneStatus(str, Enum):
    """
    Milestone status.

    Only UPCOMING <-> COMPLETED is ever written. ACTIVE is kept for wire
    compatibility; the active milestone is derived at read time instead.
    """

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class MilestoneIcon(str, Enum):
    """Display-only icon tag, carried through unchanged."""

    DASHBOARD = "dashboard"
    TIMER = "timer"
    SETTINGS = "settings"
    MEDICAL_SERVICES = "medical_services"
    DESCRIPTION = "description"
    HISTORY_EDU = "history_edu"
    EVENT_AVAILABLE = "event_available"
    CHECK = "check"
    TASK_ALT = "task_alt"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    FLAG = "flag"


class ThemeMode(str, Enum):
    """Theme preference persisted in the local cache."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class EngineState(str, Enum):
    """
    Sync engine lifecycle.

    LOADING = subscribed, no push received yet
    READY = at least one push received
    ERRORED = subscription failed; only retry() leaves this state
    """

    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"
