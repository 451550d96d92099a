"""Calendar-day normalization and frequency-aware continuity rules.

Completed days are local calendar days (``datetime.date``); streaks are
evaluated as of a local moment (``datetime``). Aware
datetimes are converted to local time before truncation; naive datetimes
are assumed to already be local.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..models.habit import Frequency

DayLike = Union[date, datetime, str]
Instant = Union[date, datetime]

_CONTINUATION_WINDOW = {
    Frequency.DAILY: timedelta(days=1),
    Frequency.WEEKLY: timedelta(days=7),
}


def to_calendar_day(value: DayLike) -> date:
    """Truncate a timestamp (or ISO string) to its local calendar day.

    Raises:
        ValueError: if a string is not an ISO date/datetime
        TypeError: for unsupported input types
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        return to_calendar_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    raise TypeError(f"Cannot interpret {type(value).__name__} as a calendar day")


def parse_day(value: object) -> Optional[date]:
    """Lenient ``to_calendar_day`` for display paths: None instead of errors."""

    try:
        return to_calendar_day(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def day_key(value: DayLike) -> str:
    """Return the ``YYYY-MM-DD`` key stored in a habit's completed days."""

    return to_calendar_day(value).isoformat()


def today() -> date:
    return date.today()


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""

    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def to_instant(value: Instant) -> datetime:
    """A datetime as naive local time; a bare day as its midnight."""

    if isinstance(value, datetime):
        return to_local_naive(value)
    return datetime.combine(value, time.min)


def as_of(value: Optional[Instant] = None) -> datetime:
    """The moment derived state is evaluated at.

    ``None`` means now. A bare day stands for its last instant, so everything
    completed on that day is already in the past.
    """
    if value is None:
        return datetime.now()
    if isinstance(value, datetime):
        return to_local_naive(value)
    return datetime.combine(value, time.max)


def is_continuation(anchor: Instant, candidate: Instant, frequency: Frequency | str | None) -> bool:
    """Whether ``candidate`` continues a streak that reached ``anchor``.

    Daily and weekly habits allow a backward gap of at most 24 hours or
    seven days, measured between instants (a bare day counts from its
    midnight). Monthly habits only continue within the same calendar
    (year, month) pair; the previous month never counts, however close.
    """
    freq = Frequency.parse(frequency)
    if freq is None:
        return False
    anchor, candidate = to_instant(anchor), to_instant(candidate)
    if freq is Frequency.MONTHLY:
        return (anchor.year, anchor.month) == (candidate.year, candidate.month)
    gap = anchor - candidate
    return timedelta(0) <= gap <= _CONTINUATION_WINDOW[freq]


def elapsed_periods(start: DayLike, end: DayLike, frequency: Frequency | str | None) -> int:
    """Number of frequency periods from ``start`` through ``end`` inclusive.

    Weekly periods are 7-day blocks counted from ``start``; monthly periods
    are calendar months. Returns 0 when ``end`` precedes ``start`` or the
    frequency is unknown.
    """
    freq = Frequency.parse(frequency)
    start_day = to_calendar_day(start)
    end_day = to_calendar_day(end)
    if freq is None or end_day < start_day:
        return 0
    if freq is Frequency.DAILY:
        return (end_day - start_day).days + 1
    if freq is Frequency.WEEKLY:
        return (end_day - start_day).days // 7 + 1
    return (end_day.year - start_day.year) * 12 + (end_day.month - start_day.month) + 1


def week_key(value: DayLike, *, iso: bool = False) -> str:
    """Bucket key for weekly aggregation.

    The default keeps the historical week-of-month bucketing
    (``day_of_month // 7``), which is not a calendar week number; ``iso``
    switches to ISO-8601 weeks.
    """
    day = to_calendar_day(value)
    if iso:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return f"{day.year}-W{day.day // 7}"


def month_key(value: DayLike) -> str:
    day = to_calendar_day(value)
    return f"{day.year}-{day.month}"


__all__ = [
    "DayLike",
    "Instant",
    "as_of",
    "day_key",
    "elapsed_periods",
    "is_continuation",
    "month_key",
    "parse_day",
    "to_instant",
    "to_local_naive",
    "to_calendar_day",
    "today",
    "week_key",
]
