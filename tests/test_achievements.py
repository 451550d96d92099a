"""Tests for milestone evaluation."""

from __future__ import annotations

from datetime import datetime

from habitcoach.models.achievement import Achievement, AchievementType
from habitcoach.services.achievements import (
    COMPLETION_MILESTONES,
    STREAK_MILESTONES,
    evaluate_achievements,
)
from tests.conftest import FIXED_NOW, make_habit

WHEN = datetime(2024, 3, 15, 10, 0)


def targets(achievements, kind: AchievementType) -> list[int]:
    return sorted(a.target for a in achievements if a.type == kind.value)


class TestStreakMilestones:
    def test_below_first_threshold_unlocks_nothing(self):
        habit = make_habit(streak=6)
        assert evaluate_achievements(habit, [None] * 6, [], unlocked_at=WHEN) == []

    def test_seven_day_streak(self):
        habit = make_habit(name="Read", streak=7)
        unlocked = evaluate_achievements(habit, [None] * 7, [], unlocked_at=WHEN)

        assert len(unlocked) == 1
        badge = unlocked[0]
        assert badge.type == AchievementType.STREAK_MILESTONE.value
        assert badge.name == "7 Day Streak!"
        assert badge.description == "Maintained a 7-day streak for Read"
        assert badge.icon == "fire"
        assert badge.target == 7
        assert badge.progress == 7
        assert badge.habit_id == habit.id
        assert badge.user_id == habit.user_id
        assert badge.unlocked_at == WHEN

    def test_every_crossed_threshold_unlocks(self):
        habit = make_habit(streak=45)
        unlocked = evaluate_achievements(habit, [], [], unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.STREAK_MILESTONE) == [7, 14, 30]

    def test_existing_milestones_are_not_repeated(self):
        habit = make_habit(streak=14)
        first = evaluate_achievements(habit, [], [], unlocked_at=WHEN)
        second = evaluate_achievements(habit, [], first, unlocked_at=WHEN)
        assert targets(first, AchievementType.STREAK_MILESTONE) == [7, 14]
        assert second == []

    def test_other_habits_milestones_do_not_block(self):
        habit = make_habit(habit_id=2, streak=7)
        elsewhere = Achievement(
            user_id=1,
            type=AchievementType.STREAK_MILESTONE.value,
            name="7 Day Streak!",
            description="",
            icon="fire",
            unlocked_at=FIXED_NOW,
            progress=7,
            target=7,
            habit_id=1,
        )
        unlocked = evaluate_achievements(habit, [], [elsewhere], unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.STREAK_MILESTONE) == [7]

    def test_all_streak_milestones(self):
        habit = make_habit(streak=400)
        unlocked = evaluate_achievements(habit, [], [], unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.STREAK_MILESTONE) == list(STREAK_MILESTONES)


class TestCompletionMilestones:
    def test_ten_completions(self):
        habit = make_habit(name="Walk")
        unlocked = evaluate_achievements(habit, [None] * 10, [], unlocked_at=WHEN)
        assert len(unlocked) == 1
        assert unlocked[0].name == "10 Completions!"
        assert unlocked[0].description == "Completed Walk 10 times"
        assert unlocked[0].icon == "check-circle"
        assert unlocked[0].progress == 10

    def test_counts_records_not_streak(self):
        habit = make_habit(streak=0)
        unlocked = evaluate_achievements(habit, [None] * 500, [], unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.COMPLETION_MILESTONE) == list(COMPLETION_MILESTONES)


class TestConsistencyMilestones:
    def test_requires_minimum_completions(self):
        habit = make_habit()
        unlocked = evaluate_achievements(habit, [None] * 6, [], consistency_score=95, unlocked_at=WHEN)
        assert unlocked == []

    def test_thresholds(self):
        habit = make_habit(name="Stretch")
        unlocked = evaluate_achievements(habit, [None] * 7, [], consistency_score=80, unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.CONSISTENCY_MILESTONE) == [50, 75]
        names = {a.name for a in unlocked}
        assert "75% Consistency!" in names
        assert all(a.icon == "chart-line" for a in unlocked)

    def test_skipped_without_score(self):
        habit = make_habit()
        unlocked = evaluate_achievements(habit, [None] * 7, [], unlocked_at=WHEN)
        assert targets(unlocked, AchievementType.CONSISTENCY_MILESTONE) == []
