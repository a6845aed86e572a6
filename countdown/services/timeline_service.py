"""
Temporal derivation for milestones.

Pure functions of (now, milestones): countdown, progress, active-milestone
selection and aggregate progress. No hidden state, so callers (and tests)
supply `now` explicitly.

Timestamps that cannot be parsed never raise here. A milestone without a
usable target time is treated as past, is excluded from active selection,
and sorts after every dated milestone.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional, Sequence

from countdown.models.enums import MilestoneStatus
from countdown.models.milestone import Milestone
from countdown.models.timeline import (
    AggregateProgress,
    Countdown,
    FocusView,
    TimelineEntry,
    TimelineView,
)
from countdown.utils.datetime_utils import ensure_utc, parse_timestamp, to_iso

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60


def _clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


def target_of(milestone: Milestone, tz: str = "UTC") -> Optional[datetime]:
    return parse_timestamp(milestone.target_time, tz)


def created_of(milestone: Milestone, tz: str = "UTC") -> Optional[datetime]:
    return parse_timestamp(milestone.created_at, tz)


def remaining_seconds(target: Optional[datetime], now: datetime) -> float:
    """Seconds until target; 0 when past or undated. Never negative."""
    if target is None:
        return 0.0
    return max(0.0, (target - ensure_utc(now)).total_seconds())


def compute_countdown(target: Optional[datetime], now: datetime) -> Countdown:
    """
    Decompose the time remaining until target.

    Uses truncation so successive ticks only ever decrease the display.

    Args:
        target: Target instant (None = unparsable, treated as past)
        now: Sampling instant

    Returns:
        Countdown with all-zero fields and is_past=True when remaining <= 0
    """
    remaining = remaining_seconds(target, now)
    if remaining <= 0:
        return Countdown(is_past=True)

    whole = math.floor(remaining)
    return Countdown(
        days=whole // SECONDS_PER_DAY,
        hours=(whole // SECONDS_PER_HOUR) % 24,
        minutes=(whole // SECONDS_PER_MINUTE) % 60,
        seconds=whole % 60,
        total_seconds=remaining,
        is_past=False,
    )


def milestone_countdown(milestone: Milestone, now: datetime, tz: str = "UTC") -> Countdown:
    return compute_countdown(target_of(milestone, tz), now)


def window_progress(start: Optional[datetime], end: Optional[datetime], now: datetime) -> float:
    """
    Elapsed share of [start, end] at `now`, as a clamped percentage.

    A zero or inverted window (or a missing bound) counts as fully elapsed.
    """
    if start is None or end is None:
        return 100.0
    window = (end - start).total_seconds()
    if window <= 0:
        return 100.0
    remaining = remaining_seconds(end, now)
    return _clamp_percent((window - remaining) / window * 100.0)


def milestone_progress(milestone: Milestone, now: datetime, tz: str = "UTC") -> float:
    return window_progress(created_of(milestone, tz), target_of(milestone, tz), now)


def sort_timeline(milestones: Iterable[Milestone], tz: str = "UTC") -> list[Milestone]:
    """
    Stable ascending order by target time.

    Milestones with an unparsable target time follow the dated ones, in
    their original order.
    """
    dated: list[tuple[datetime, Milestone]] = []
    undated: list[Milestone] = []
    for milestone in milestones:
        target = target_of(milestone, tz)
        if target is None:
            undated.append(milestone)
        else:
            dated.append((target, milestone))
    dated.sort(key=lambda item: item[0])
    return [milestone for _, milestone in dated] + undated


def select_active(
    milestones: Iterable[Milestone], now: datetime, tz: str = "UTC"
) -> Optional[Milestone]:
    """
    Pick the soonest future milestone that is not completed.

    Ties on target time go to the earlier milestone in input order.
    Returns None when everything is done or past ("all caught up").
    """
    now = ensure_utc(now)
    best: Optional[Milestone] = None
    best_target: Optional[datetime] = None
    for milestone in milestones:
        if milestone.status == MilestoneStatus.COMPLETED:
            continue
        target = target_of(milestone, tz)
        if target is None or target <= now:
            continue
        # strict < keeps the first of equal targets
        if best_target is None or target < best_target:
            best, best_target = milestone, target
    return best


def compute_aggregate(
    milestones: Sequence[Milestone], now: datetime, tz: str = "UTC"
) -> AggregateProgress:
    """
    Portfolio progress from the earliest createdAt to the latest targetTime.

    Empty set -> 0 with no end.
    """
    if not milestones:
        return AggregateProgress()

    completed = sum(1 for m in milestones if m.status == MilestoneStatus.COMPLETED)

    start: Optional[datetime] = None
    start_raw: Optional[str] = None
    for milestone in milestones:
        created = created_of(milestone, tz)
        if created is not None and (start is None or created < start):
            start, start_raw = created, milestone.created_at

    end: Optional[datetime] = None
    end_raw: Optional[str] = None
    for milestone in milestones:
        target = target_of(milestone, tz)
        if target is not None and (end is None or target >= end):
            end, end_raw = target, milestone.target_time

    if start is None or end is None:
        percentage = 100.0
    else:
        window = (end - start).total_seconds()
        if window <= 0:
            percentage = 100.0
        else:
            elapsed = (ensure_utc(now) - start).total_seconds()
            percentage = _clamp_percent(elapsed / window * 100.0)

    return AggregateProgress(
        total=len(milestones),
        completed=completed,
        percentage=percentage,
        start=start_raw,
        end=end_raw,
    )


def build_entry(milestone: Milestone, now: datetime, tz: str = "UTC") -> TimelineEntry:
    return TimelineEntry(
        milestone=milestone,
        countdown=milestone_countdown(milestone, now, tz),
        progress=milestone_progress(milestone, now, tz),
    )


def build_timeline_view(
    milestones: Sequence[Milestone], now: datetime, tz: str = "UTC"
) -> TimelineView:
    """Overview data: aggregate, active milestone, and all entries in timeline order."""
    ordered = sort_timeline(milestones, tz)
    active = select_active(ordered, now, tz)
    return TimelineView(
        now=to_iso(now),
        aggregate=compute_aggregate(milestones, now, tz),
        active=build_entry(active, now, tz) if active else None,
        entries=[build_entry(m, now, tz) for m in ordered],
    )


def build_focus_view(
    milestones: Sequence[Milestone], now: datetime, tz: str = "UTC"
) -> FocusView:
    """Focus data: the active milestone only, or all-caught-up at 100%."""
    active = select_active(milestones, now, tz)
    if active is None:
        return FocusView(now=to_iso(now))
    entry = build_entry(active, now, tz)
    return FocusView(
        now=to_iso(now),
        active=entry,
        progress=entry.progress,
        all_caught_up=False,
    )
