"""
Derived timeline models.

Everything here is computed from (now, milestone set) and never stored.
"""

from typing import Optional

from pydantic import BaseModel, Field

from countdown.models.milestone import Milestone


class Countdown(BaseModel):
    """Truncated time remaining until a milestone's target time."""

    days: int = Field(0, ge=0)
    hours: int = Field(0, ge=0, le=23)
    minutes: int = Field(0, ge=0, le=59)
    seconds: int = Field(0, ge=0, le=59)
    total_seconds: float = Field(0.0, ge=0)
    is_past: bool = False


class TimelineEntry(BaseModel):
    """A milestone together with its derived countdown and progress."""

    milestone: Milestone
    countdown: Countdown
    progress: float = Field(..., ge=0, le=100, description="Elapsed share of the window, percent")


class AggregateProgress(BaseModel):
    """Portfolio-level progress across the whole milestone set."""

    total: int = 0
    completed: int = 0
    percentage: float = Field(0.0, ge=0, le=100)
    start: Optional[str] = Field(None, description="Earliest createdAt")
    end: Optional[str] = Field(None, description="Latest targetTime")


class TimelineView(BaseModel):
    """Overview: aggregate progress, the active milestone, and every entry in order."""

    now: str
    aggregate: AggregateProgress
    active: Optional[TimelineEntry] = None
    entries: list[TimelineEntry] = Field(default_factory=list)


class FocusView(BaseModel):
    """Focus screen: only the active milestone. all_caught_up when there is none."""

    now: str
    active: Optional[TimelineEntry] = None
    progress: float = Field(100.0, ge=0, le=100)
    all_caught_up: bool = True
