"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitCompletion


class HabitRepository(Protocol):
    """Repository for habits and their completion history."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID regardless of owner."""
        ...

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by case-insensitive name."""
        ...

    def list_all(self, *, user_id: Optional[int] = None) -> list[Habit]:
        """List habits for one user, or all habits."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Persist changes to an existing habit."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit together with its completions; False if absent."""
        ...

    def list_completions(self, habit_id: int) -> list[HabitCompletion]:
        """Completions for one habit, oldest first."""
        ...

    def list_completions_for_user(self, *, user_id: int) -> list[HabitCompletion]:
        """Every completion owned by a user, oldest first."""
        ...

    def record_completion(
        self, habit: Habit, completion: HabitCompletion
    ) -> tuple[Habit, HabitCompletion]:
        """Save the habit and a new completion atomically."""
        ...

    def remove_completion_day(self, habit: Habit, day: date) -> tuple[Habit, int]:
        """Save the habit and delete that day's completions atomically."""
        ...
