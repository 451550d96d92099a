"""Service module exports."""

from . import (
    achievements,
    coach,
    dates,
    habits,
    insights,
    snapshots,
    stats,
    streaks,
)

__all__ = [
    "achievements",
    "coach",
    "dates",
    "habits",
    "insights",
    "snapshots",
    "stats",
    "streaks",
]
