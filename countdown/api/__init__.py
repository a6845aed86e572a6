"""API routers."""

from countdown.api import milestones, settings, status, timeline, transfer

__all__ = [
    "milestones",
    "settings",
    "status",
    "timeline",
    "transfer",
]
