"""Milestone evaluation: turn streaks and completion counts into achievements."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sized

from ..logging_config import get_logger
from ..models.achievement import Achievement, AchievementType
from ..models.habit import Habit

logger = get_logger(__name__)

STREAK_MILESTONES = (7, 14, 30, 60, 100, 365)
COMPLETION_MILESTONES = (10, 25, 50, 100, 250, 500)
CONSISTENCY_MILESTONES = (50, 75, 90)
# Consistency milestones only apply from this many completions on.
CONSISTENCY_MIN_COMPLETIONS = 7


def _key(kind: AchievementType, target: int, habit_id: Optional[int]) -> tuple[str, int, Optional[int]]:
    return (kind.value, target, habit_id)


def _streak_achievement(habit: Habit, target: int, unlocked_at: datetime) -> Achievement:
    return Achievement(
        user_id=habit.user_id,
        type=AchievementType.STREAK_MILESTONE.value,
        name=f"{target} Day Streak!",
        description=f"Maintained a {target}-day streak for {habit.name}",
        icon="fire",
        unlocked_at=unlocked_at,
        progress=habit.streak,
        target=target,
        habit_id=habit.id,
    )


def _completion_achievement(habit: Habit, target: int, count: int, unlocked_at: datetime) -> Achievement:
    return Achievement(
        user_id=habit.user_id,
        type=AchievementType.COMPLETION_MILESTONE.value,
        name=f"{target} Completions!",
        description=f"Completed {habit.name} {target} times",
        icon="check-circle",
        unlocked_at=unlocked_at,
        progress=count,
        target=target,
        habit_id=habit.id,
    )


def _consistency_achievement(habit: Habit, target: int, score: int, unlocked_at: datetime) -> Achievement:
    return Achievement(
        user_id=habit.user_id,
        type=AchievementType.CONSISTENCY_MILESTONE.value,
        name=f"{target}% Consistency!",
        description=f"Reached a consistency score of {target} for {habit.name}",
        icon="chart-line",
        unlocked_at=unlocked_at,
        progress=score,
        target=target,
        habit_id=habit.id,
    )


def evaluate_achievements(
    habit: Habit,
    completions: Sized,
    existing: Iterable[Achievement],
    *,
    consistency_score: Optional[int] = None,
    unlocked_at: Optional[datetime] = None,
) -> list[Achievement]:
    """Return achievements newly unlocked by the habit's current state.

    A milestone is emitted when the current value reaches its threshold and
    no record with the same (type, target, habit) exists yet, so repeated
    evaluation over the same inputs emits nothing new. Returned records are
    unsaved; persisting them is the caller's job.
    """
    when = unlocked_at or datetime.now()
    seen = {a.milestone_key for a in existing}
    unlocked: list[Achievement] = []

    def _claim(kind: AchievementType, target: int) -> bool:
        key = _key(kind, target, habit.id)
        if key in seen:
            return False
        seen.add(key)
        return True

    streak = max(0, int(habit.streak or 0))
    for target in STREAK_MILESTONES:
        if streak >= target and _claim(AchievementType.STREAK_MILESTONE, target):
            unlocked.append(_streak_achievement(habit, target, when))

    count = len(completions)
    for target in COMPLETION_MILESTONES:
        if count >= target and _claim(AchievementType.COMPLETION_MILESTONE, target):
            unlocked.append(_completion_achievement(habit, target, count, when))

    if consistency_score is not None and count >= CONSISTENCY_MIN_COMPLETIONS:
        for target in CONSISTENCY_MILESTONES:
            if consistency_score >= target and _claim(AchievementType.CONSISTENCY_MILESTONE, target):
                unlocked.append(_consistency_achievement(habit, target, consistency_score, when))

    if unlocked:
        logger.info(
            "Unlocked %d achievement(s) for habit %s",
            len(unlocked),
            habit.id,
            extra={"targets": [(a.type, a.target) for a in unlocked]},
        )
    return unlocked


__all__ = [
    "COMPLETION_MILESTONES",
    "CONSISTENCY_MILESTONES",
    "CONSISTENCY_MIN_COMPLETIONS",
    "STREAK_MILESTONES",
    "evaluate_achievements",
]
