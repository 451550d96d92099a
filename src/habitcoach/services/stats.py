"""Completion statistics and consistency scoring."""

from __future__ import annotations

import math
import statistics
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from ..logging_config import get_logger
from ..models.habit import Frequency, Habit, HabitCompletion
from .dates import (
    Instant,
    as_of,
    elapsed_periods,
    month_key,
    parse_day,
    to_local_naive,
    week_key,
)
from .streaks import compute_streaks

logger = get_logger(__name__)

ONE_DAY_MS = 24 * 60 * 60 * 1000
WEEK_WINDOW_DAYS = 7
MONTH_WINDOW_DAYS = 30

_PERIOD_LENGTH_DAYS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.MONTHLY: 30,
}


@dataclass(slots=True)
class HabitStats:
    """Derived, never-persisted view of a habit's progress."""

    current_streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    completion_rate: float = 0.0
    weekly_completion_rate: float = 0.0
    monthly_completion_rate: float = 0.0
    consistency_score: int = 0
    last_week_completions: int = 0
    last_month_completions: int = 0
    weekly_buckets: dict[str, int] = field(default_factory=dict)
    monthly_buckets: dict[str, int] = field(default_factory=dict)
    time_of_day: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _as_timestamp(value: object) -> Optional[datetime]:
    """Extract a naive local datetime from a completion, datetime or string."""

    raw = getattr(value, "completed_at", value)
    if isinstance(raw, str):
        try:
            raw = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if isinstance(raw, datetime):
        return to_local_naive(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, datetime.min.time())
    return None


def completion_timestamps(completions: Iterable[object] | None) -> list[datetime]:
    """Ascending completion timestamps; unusable entries are dropped."""

    stamps = []
    for item in completions or ():
        stamp = _as_timestamp(item)
        if stamp is None:
            logger.debug("Skipping completion without a usable timestamp: %r", item)
            continue
        stamps.append(stamp)
    return sorted(stamps)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_rate(
    total: int,
    created_at: object,
    frequency: Frequency | str | None,
    *,
    today: Optional[date] = None,
) -> float:
    """Completions per elapsed period since creation, as a 0-100 percentage."""

    start = parse_day(created_at)
    if start is None or total <= 0:
        return 0.0
    periods = elapsed_periods(start, today or date.today(), frequency)
    if periods <= 0:
        return 0.0
    return round(min(100.0, max(0.0, total / periods * 100.0)), 2)


def bucket_completions(
    completions: Iterable[object] | None, *, iso_weeks: bool = False
) -> tuple[dict[str, int], dict[str, int]]:
    """Count completions per week key and per month key."""

    weekly: dict[str, int] = {}
    monthly: dict[str, int] = {}
    for stamp in completion_timestamps(completions):
        wk = week_key(stamp, iso=iso_weeks)
        mk = month_key(stamp)
        weekly[wk] = weekly.get(wk, 0) + 1
        monthly[mk] = monthly.get(mk, 0) + 1
    return weekly, monthly


def time_of_day_buckets(completions: Iterable[object] | None) -> dict[str, int]:
    """Count completions per hour of day (keys are "0".."23")."""

    buckets: dict[str, int] = {}
    for stamp in completion_timestamps(completions):
        key = str(stamp.hour)
        buckets[key] = buckets.get(key, 0) + 1
    return buckets


def consistency_score(completions: Iterable[object] | None) -> int:
    """0-100 regularity score from the spread of gaps between completions.

    Population standard deviation of consecutive gaps (in ms), scaled so that
    one day of deviation or more scores 0. Fewer than two completions score 0.
    """
    stamps = completion_timestamps(completions)
    if len(stamps) < 2:
        return 0

    gaps = [
        (later - earlier) / timedelta(milliseconds=1)
        for earlier, later in zip(stamps, stamps[1:])
    ]
    deviation = statistics.pstdev(gaps)
    return _round_half_up(max(0.0, 1 - deviation / ONE_DAY_MS) * 100)


def window_completions(days: Iterable[date], *, today: date, length: int) -> int:
    """Distinct completion days within the ``length`` days ending ``today``."""

    start = today - timedelta(days=length - 1)
    return len({d for d in days if start <= d <= today})


def _window_rate(count: int, frequency: Frequency | None, length: int) -> float:
    if frequency is None or count <= 0:
        return 0.0
    expected = max(1.0, length / _PERIOD_LENGTH_DAYS[frequency])
    return round(min(100.0, count / expected * 100.0), 2)


def compute_habit_stats(
    habit: Habit,
    completions: Iterable[HabitCompletion] | None,
    *,
    now: Optional[Instant] = None,
    iso_weeks: bool = False,
) -> HabitStats:
    """Derive the full statistics view for one habit snapshot as of ``now``.

    A bare day for ``now`` means the end of that day.
    """
    moment = as_of(now)
    ref_day = moment.date()
    frequency = Frequency.parse(habit.frequency)
    stamps = completion_timestamps(completions)
    completion_days = [stamp.date() for stamp in stamps]

    current, longest = compute_streaks(habit.completed_dates, frequency, now=moment)
    weekly, monthly = bucket_completions(stamps, iso_weeks=iso_weeks)
    last_week = window_completions(completion_days, today=ref_day, length=WEEK_WINDOW_DAYS)
    last_month = window_completions(completion_days, today=ref_day, length=MONTH_WINDOW_DAYS)

    return HabitStats(
        current_streak=current,
        longest_streak=longest,
        total_completions=len(stamps),
        completion_rate=completion_rate(len(stamps), habit.created_at, frequency, today=ref_day),
        weekly_completion_rate=_window_rate(last_week, frequency, WEEK_WINDOW_DAYS),
        monthly_completion_rate=_window_rate(last_month, frequency, MONTH_WINDOW_DAYS),
        consistency_score=consistency_score(stamps),
        last_week_completions=last_week,
        last_month_completions=last_month,
        weekly_buckets=weekly,
        monthly_buckets=monthly,
        time_of_day=time_of_day_buckets(stamps),
    )


__all__ = [
    "HabitStats",
    "ONE_DAY_MS",
    "bucket_completions",
    "completion_rate",
    "completion_timestamps",
    "compute_habit_stats",
    "consistency_score",
    "time_of_day_buckets",
    "window_completions",
]
