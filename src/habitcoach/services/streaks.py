"""Streak calculations over a habit's completed calendar days."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..logging_config import get_logger
from ..models.habit import Frequency
from .dates import Instant, as_of, is_continuation, parse_day, to_instant

logger = get_logger(__name__)


def _distinct_days(completed_dates: Iterable[object] | None) -> set[date]:
    """Parse completed-day entries into a set, skipping malformed values."""

    days: set[date] = set()
    for raw in completed_dates or ():
        day = parse_day(raw)
        if day is None:
            logger.debug("Skipping malformed completed day %r", raw)
            continue
        days.add(day)
    return days


def compute_streak(
    completed_dates: Iterable[object] | None,
    frequency: Frequency | str | None,
    *,
    now: Optional[Instant] = None,
) -> int:
    """Return the current streak, counted backward from ``now``.

    Single greedy pass over the distinct days, newest first. The cursor
    starts at ``now`` (a bare day means the end of that day); each day that
    continues the cursor (see ``is_continuation``) extends the streak and
    becomes the new cursor. The first gap ends the walk, even when older
    days would be consecutive among themselves. Days starting after
    ``now`` are ignored.
    """
    freq = Frequency.parse(frequency)
    if freq is None:
        return 0

    moment = as_of(now)
    days = sorted(
        (d for d in _distinct_days(completed_dates) if to_instant(d) <= moment),
        reverse=True,
    )

    streak = 0
    cursor: Instant = moment
    for day in days:
        if not is_continuation(cursor, day, freq):
            break
        streak += 1
        cursor = day
    return streak


def longest_streak(
    completed_dates: Iterable[object] | None,
    frequency: Frequency | str | None,
) -> int:
    """Return the longest run of days that continue one another."""

    freq = Frequency.parse(frequency)
    if freq is None:
        return 0

    longest = 0
    run = 0
    previous: date | None = None
    for day in sorted(_distinct_days(completed_dates)):
        if previous is not None and is_continuation(day, previous, freq):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def compute_streaks(
    completed_dates: Iterable[object] | None,
    frequency: Frequency | str | None,
    *,
    now: Optional[Instant] = None,
) -> tuple[int, int]:
    """Return (current_streak, longest_streak)."""

    days = list(completed_dates or ())
    current = compute_streak(days, frequency, now=now)
    return current, max(current, longest_streak(days, frequency))


__all__ = ["compute_streak", "compute_streaks", "longest_streak"]
