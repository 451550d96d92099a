"""Tests for derived habit statistics."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from habitcoach.services.stats import (
    HabitStats,
    bucket_completions,
    completion_rate,
    completion_timestamps,
    compute_habit_stats,
    consistency_score,
    time_of_day_buckets,
    window_completions,
)
from tests.conftest import FIXED_NOW, FIXED_TODAY, days_ago, make_completions, make_habit

BASE = datetime(2024, 3, 1, 8, 0)


class TestConsistencyScore:
    """Regularity score from the spread of gaps between completions."""

    def test_fewer_than_two_completions_score_zero(self):
        assert consistency_score([]) == 0
        assert consistency_score(make_completions([BASE])) == 0

    def test_perfectly_regular_gaps_score_hundred(self):
        stamps = [BASE + timedelta(days=i) for i in range(5)]
        assert consistency_score(make_completions(stamps)) == 100

    def test_half_day_deviation_scores_fifty(self):
        stamps = [BASE, BASE + timedelta(hours=12), BASE + timedelta(hours=48)]
        assert consistency_score(make_completions(stamps)) == 50

    def test_rounds_half_up(self):
        # gaps of 24h and 6h: deviation 9h, raw score 62.5
        stamps = [BASE, BASE + timedelta(hours=24), BASE + timedelta(hours=30)]
        assert consistency_score(make_completions(stamps)) == 63

    def test_large_deviation_floors_at_zero(self):
        stamps = [BASE, BASE + timedelta(hours=1), BASE + timedelta(days=10)]
        assert consistency_score(make_completions(stamps)) == 0

    def test_input_order_is_irrelevant(self):
        stamps = [BASE + timedelta(days=i) for i in (3, 0, 2, 1)]
        assert consistency_score(make_completions(stamps)) == 100

    def test_accepts_raw_datetimes_and_strings(self):
        assert consistency_score([BASE, (BASE + timedelta(days=1)).isoformat()]) == 100


class TestCompletionRate:
    def test_zero_completions(self):
        assert completion_rate(0, FIXED_NOW, "daily", today=FIXED_TODAY) == 0.0

    def test_daily_rate_counts_creation_day(self):
        created = FIXED_NOW - timedelta(days=30)
        assert completion_rate(31, created, "daily", today=FIXED_TODAY) == 100.0
        assert completion_rate(10, created, "daily", today=FIXED_TODAY) == pytest.approx(32.26)

    def test_clamped_to_hundred(self):
        assert completion_rate(50, FIXED_NOW, "daily", today=FIXED_TODAY) == 100.0

    def test_weekly_rate(self):
        created = FIXED_NOW - timedelta(days=27)
        assert completion_rate(2, created, "weekly", today=FIXED_TODAY) == 50.0

    def test_unknown_frequency_or_missing_creation(self):
        assert completion_rate(5, FIXED_NOW, "yearly", today=FIXED_TODAY) == 0.0
        assert completion_rate(5, None, "daily", today=FIXED_TODAY) == 0.0


class TestBuckets:
    def test_week_and_month_buckets(self):
        stamps = [datetime(2024, 3, 1, 7), datetime(2024, 3, 8, 7), datetime(2024, 2, 29, 7)]
        weekly, monthly = bucket_completions(make_completions(stamps))
        assert weekly == {"2024-W0": 1, "2024-W1": 1, "2024-W4": 1}
        assert monthly == {"2024-3": 2, "2024-2": 1}

    def test_iso_week_buckets(self):
        stamps = [datetime(2024, 3, 11, 7), datetime(2024, 3, 15, 7)]
        weekly, _ = bucket_completions(make_completions(stamps), iso_weeks=True)
        assert weekly == {"2024-W11": 2}

    def test_time_of_day(self):
        stamps = [datetime(2024, 3, 1, 7, 5), datetime(2024, 3, 2, 7, 55), datetime(2024, 3, 3, 21)]
        assert time_of_day_buckets(make_completions(stamps)) == {"7": 2, "21": 1}

    def test_unusable_timestamps_are_dropped(self):
        assert completion_timestamps([None, "nope", BASE]) == [BASE]


class TestWindows:
    def test_window_counts_distinct_days(self):
        days = [days_ago(0), days_ago(0), days_ago(6), days_ago(7)]
        assert window_completions(days, today=FIXED_TODAY, length=7) == 2

    def test_future_days_fall_outside_window(self):
        days = [FIXED_TODAY + timedelta(days=1)]
        assert window_completions(days, today=FIXED_TODAY, length=7) == 0


class TestComputeHabitStats:
    def test_empty_habit(self):
        stats = compute_habit_stats(make_habit(), [], now=FIXED_TODAY)
        assert stats == HabitStats()

    def test_full_week_of_daily_completions(self):
        stamps = [datetime.combine(days_ago(n), FIXED_NOW.time()) for n in range(7)]
        habit = make_habit(completed_dates=[s.date().isoformat() for s in stamps], streak=7)
        stats = compute_habit_stats(habit, make_completions(stamps), now=FIXED_TODAY)

        assert stats.current_streak == 7
        assert stats.longest_streak == 7
        assert stats.total_completions == 7
        assert stats.last_week_completions == 7
        assert stats.weekly_completion_rate == 100.0
        assert stats.last_month_completions == 7
        assert stats.monthly_completion_rate == pytest.approx(23.33)
        assert stats.consistency_score == 100
        assert stats.time_of_day == {"9": 7}

    def test_weekly_habit_window_rate_is_clamped(self):
        stamps = [datetime.combine(days_ago(n), FIXED_NOW.time()) for n in (0, 2)]
        habit = make_habit(frequency="weekly", completed_dates=[s.date().isoformat() for s in stamps])
        stats = compute_habit_stats(habit, make_completions(stamps), now=FIXED_TODAY)
        assert stats.weekly_completion_rate == 100.0
        assert stats.monthly_completion_rate == pytest.approx(46.67)

    def test_to_dict_is_plain_data(self):
        data = compute_habit_stats(make_habit(), [], now=FIXED_TODAY).to_dict()
        assert data["current_streak"] == 0
        assert data["weekly_buckets"] == {}

    def test_recomputing_unchanged_history_is_stable(self):
        stamps = [datetime(2024, 3, 1, 7) + timedelta(days=2 * i, hours=i) for i in range(7)]
        habit = make_habit(completed_dates=[s.date().isoformat() for s in stamps])
        completions = make_completions(stamps)

        first = compute_habit_stats(habit, completions, now=FIXED_TODAY)
        second = compute_habit_stats(habit, completions, now=FIXED_TODAY)

        assert first.weekly_buckets
        assert first.time_of_day
        assert first == second

    def test_unusable_completions_are_not_counted(self):
        completions = make_completions([BASE, None])
        stats = compute_habit_stats(make_habit(), completions, now=FIXED_TODAY)
        assert stats.total_completions == 1
        assert sum(stats.monthly_buckets.values()) == 1

    def test_streak_evaluated_at_the_given_moment(self):
        habit = make_habit(completed_dates=[days_ago(1).isoformat()])
        assert compute_habit_stats(habit, [], now=FIXED_NOW).current_streak == 0
        assert compute_habit_stats(habit, [], now=FIXED_NOW).longest_streak == 1
