"""Habit tracking workflows: mutations plus recomputation of derived state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional, Union

from ..domain.repositories import AchievementRepository, HabitRepository, InsightRepository
from ..logging_config import get_logger
from ..models.achievement import Achievement
from ..models.habit import Frequency, Habit, HabitCompletion
from ..models.insight import Insight
from .achievements import evaluate_achievements
from .coach import respond
from .dates import day_key, to_calendar_day, to_local_naive
from .insights import TextGenerator, generate_insights, weekly_summary
from .snapshots import HabitSnapshot, SnapshotFeed
from .stats import HabitStats, compute_habit_stats
from .streaks import compute_streak

logger = get_logger(__name__)

When = Union[date, datetime, None]


class HabitNotFoundError(LookupError):
    """Raised when a habit id or name does not exist."""


class HabitAccessError(PermissionError):
    """Raised when a user touches a habit owned by someone else."""


@dataclass(slots=True)
class CompletionResult:
    """Everything a completion changed."""

    habit: Habit
    completion: Optional[HabitCompletion]
    stats: HabitStats
    achievements: list[Achievement] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)

    @property
    def already_completed(self) -> bool:
        return self.completion is None


class HabitTracker:
    """Apply habit mutations and keep the cached streak honest.

    Every change to a habit's completed days recomputes its streak before
    saving. Completing a habit also evaluates milestones and, once enough
    history exists and a generator is configured, asks for insights.
    """

    def __init__(
        self,
        habit_repo: HabitRepository,
        achievement_repo: AchievementRepository,
        insight_repo: InsightRepository,
        *,
        generator: Optional[TextGenerator] = None,
        feed: Optional[SnapshotFeed] = None,
        iso_weeks: bool = False,
        insight_min_completions: int = 5,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.habit_repo = habit_repo
        self.achievement_repo = achievement_repo
        self.insight_repo = insight_repo
        self.generator = generator
        self.feed = feed
        self.iso_weeks = iso_weeks
        self.insight_min_completions = insight_min_completions
        self.clock = clock

    # Lookups
    def get_habit(self, habit_id: int, *, user_id: int) -> Habit:
        habit = self.habit_repo.get_by_id(habit_id)
        if habit is None:
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        if habit.user_id != user_id:
            raise HabitAccessError(f"Habit {habit_id} belongs to another user")
        return habit

    def find_habit(self, name: str, *, user_id: int) -> Habit:
        habit = self.habit_repo.get_by_name(name, user_id=user_id)
        if habit is None:
            raise HabitNotFoundError(f"No habit named {name!r}")
        return habit

    def list_habits(self, *, user_id: int) -> list[Habit]:
        return self.habit_repo.list_all(user_id=user_id)

    def snapshot(self, *, user_id: int) -> HabitSnapshot:
        return HabitSnapshot(
            user_id=user_id,
            habits=tuple(self.habit_repo.list_all(user_id=user_id)),
            completions=tuple(self.habit_repo.list_completions_for_user(user_id=user_id)),
            taken_at=self.clock(),
        )

    def _publish(self, user_id: int) -> None:
        if self.feed is not None and self.feed.listener_count:
            self.feed.publish(self.snapshot(user_id=user_id))

    # Mutations
    def add_habit(
        self,
        name: str,
        frequency: Frequency | str,
        *,
        user_id: int,
        description: Optional[str] = None,
    ) -> Habit:
        """Create a habit with no completions and a zero streak."""

        clean_name = (name or "").strip()
        if not clean_name:
            raise ValueError("Habit name must not be blank")
        freq = Frequency.parse(frequency)
        if freq is None:
            raise ValueError(f"Unknown frequency {frequency!r}; expected daily, weekly or monthly")

        now = self.clock()
        habit = self.habit_repo.create(
            Habit(
                user_id=user_id,
                name=clean_name,
                description=(description or "").strip() or None,
                frequency=freq.value,
                created_at=now,
                updated_at=now,
                streak=0,
                completed_dates=[],
            )
        )
        logger.info("Created habit %s", habit.id, extra={"habit_name": habit.name, "frequency": freq.value})
        self._publish(user_id)
        return habit

    def update_habit(
        self,
        habit_id: int,
        *,
        user_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        frequency: Frequency | str | None = None,
    ) -> Habit:
        """Rename, re-describe or re-schedule a habit."""

        habit = self.get_habit(habit_id, user_id=user_id)
        if name is not None:
            if not name.strip():
                raise ValueError("Habit name must not be blank")
            habit.name = name.strip()
        if description is not None:
            habit.description = description.strip() or None
        if frequency is not None:
            freq = Frequency.parse(frequency)
            if freq is None:
                raise ValueError(f"Unknown frequency {frequency!r}; expected daily, weekly or monthly")
            habit.frequency = freq.value

        now = self.clock()
        habit.streak = compute_streak(habit.completed_dates, habit.frequency, now=now)
        habit.updated_at = now
        habit = self.habit_repo.update(habit)
        logger.info("Updated habit %s", habit.id)
        self._publish(user_id)
        return habit

    def _resolve_when(self, when: When, now: datetime) -> datetime:
        if when is None:
            return now
        if isinstance(when, datetime):
            stamp = to_local_naive(when)
        else:
            day = to_calendar_day(when)
            stamp = now if day == now.date() else datetime.combine(day, now.time())
        if to_calendar_day(stamp) > now.date():
            raise ValueError("Cannot record a completion in the future")
        return stamp

    def complete_habit(
        self,
        habit_id: int,
        *,
        user_id: int,
        when: When = None,
        notes: Optional[str] = None,
    ) -> CompletionResult:
        """Mark a habit done for a day and derive everything that follows.

        Completing an already-completed day changes nothing.
        """
        habit = self.get_habit(habit_id, user_id=user_id)
        now = self.clock()
        stamp = self._resolve_when(when, now)
        key = day_key(stamp)
        prior = self.habit_repo.list_completions(habit_id)

        if key in set(habit.completed_dates or ()):
            logger.info("Habit %s already completed on %s", habit_id, key)
            return CompletionResult(
                habit=habit,
                completion=None,
                stats=compute_habit_stats(habit, prior, now=now, iso_weeks=self.iso_weeks),
            )

        habit.completed_dates = sorted(set(habit.completed_dates or ()) | {key})
        habit.streak = compute_streak(habit.completed_dates, habit.frequency, now=now)
        if habit.last_completed is None or stamp > habit.last_completed:
            habit.last_completed = stamp
        habit.updated_at = now

        completion = HabitCompletion(
            habit_id=habit_id,
            user_id=user_id,
            completed_at=stamp,
            notes=(notes or "").strip() or None,
        )
        habit, completion = self.habit_repo.record_completion(habit, completion)
        logger.info(
            "Completed habit %s for %s",
            habit_id,
            key,
            extra={"streak": habit.streak, "completion_id": completion.id},
        )

        completions = [*prior, completion]
        stats = compute_habit_stats(habit, completions, now=now, iso_weeks=self.iso_weeks)

        existing = self.achievement_repo.list_for_user(user_id=user_id, habit_id=habit_id)
        unlocked = evaluate_achievements(
            habit,
            completions,
            existing,
            consistency_score=stats.consistency_score,
            unlocked_at=now,
        )
        unlocked = self.achievement_repo.add_many(unlocked)

        insights: list[Insight] = []
        if self.generator is not None and len(prior) >= self.insight_min_completions:
            insights = self.insight_repo.add_many(
                generate_insights(habit, stats, self.generator, now=now)
            )

        self._publish(user_id)
        return CompletionResult(
            habit=habit,
            completion=completion,
            stats=stats,
            achievements=unlocked,
            insights=insights,
        )

    def uncomplete_habit(self, habit_id: int, *, user_id: int, when: When = None) -> Habit:
        """Remove a day from the completed set along with that day's completion records."""

        habit = self.get_habit(habit_id, user_id=user_id)
        now = self.clock()
        day = to_calendar_day(when) if when is not None else now.date()
        key = day_key(day)

        habit.completed_dates = sorted(set(habit.completed_dates or ()) - {key})
        habit.streak = compute_streak(habit.completed_dates, habit.frequency, now=now)
        habit.updated_at = now
        habit, removed = self.habit_repo.remove_completion_day(habit, day)
        logger.info(
            "Uncompleted habit %s for %s",
            habit_id,
            key,
            extra={"streak": habit.streak, "removed_completions": removed},
        )
        self._publish(user_id)
        return habit

    def delete_habit(self, habit_id: int, *, user_id: int) -> None:
        """Delete a habit and all of its completion records."""

        self.get_habit(habit_id, user_id=user_id)
        if not self.habit_repo.delete(habit_id, user_id=user_id):
            raise HabitNotFoundError(f"Habit {habit_id} not found")
        logger.info("Deleted habit %s", habit_id)
        self._publish(user_id)

    # Derived state
    def stats_for(self, habit_id: int, *, user_id: int, today: Optional[date] = None) -> HabitStats:
        habit = self.get_habit(habit_id, user_id=user_id)
        completions = self.habit_repo.list_completions(habit_id)
        return compute_habit_stats(
            habit,
            completions,
            now=today or self.clock(),
            iso_weeks=self.iso_weeks,
        )

    def refresh_streaks(self, *, user_id: Optional[int] = None, now: Optional[datetime] = None) -> int:
        """Recompute cached streaks as of ``now``; returns how many changed."""

        moment = now or self.clock()
        changed = 0
        changed_users: set[int] = set()
        for habit in self.habit_repo.list_all(user_id=user_id):
            fresh = compute_streak(habit.completed_dates, habit.frequency, now=moment)
            if fresh == habit.streak:
                continue
            logger.debug("Streak for habit %s: %s -> %s", habit.id, habit.streak, fresh)
            habit.streak = fresh
            self.habit_repo.update(habit)
            changed += 1
            changed_users.add(habit.user_id)

        for uid in sorted(changed_users):
            self._publish(uid)
        if changed:
            logger.info("Refreshed %d streak(s) as of %s", changed, moment.isoformat(timespec="minutes"))
        return changed

    def summarize_week(self, *, user_id: int) -> Optional[Insight]:
        """Store and return a weekly summary insight, or None without habits."""

        now = self.clock()
        habits = self.habit_repo.list_all(user_id=user_id)
        stats_by_habit = {
            habit.id: compute_habit_stats(
                habit,
                self.habit_repo.list_completions(habit.id),
                now=now,
                iso_weeks=self.iso_weeks,
            )
            for habit in habits
            if habit.id is not None
        }
        summary = weekly_summary(user_id, habits, stats_by_habit, now=now)
        if summary is None:
            return None
        return self.insight_repo.add_many([summary])[0]

    # Coach
    def ask(self, message: str, *, user_id: int) -> str:
        """Answer a coach question from the user's current habits."""

        return respond(message, self.habit_repo.list_all(user_id=user_id), today=self.clock().date())


__all__ = [
    "CompletionResult",
    "HabitAccessError",
    "HabitNotFoundError",
    "HabitTracker",
]
