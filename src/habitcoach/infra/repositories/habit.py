"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.habit import Habit, HabitCompletion


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID regardless of owner."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_name(self, name: str, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by case-insensitive name."""
        with self.session_factory() as session:
            statement = select(Habit).where(
                Habit.user_id == user_id,
                func.lower(Habit.name) == name.strip().lower(),
            )
            obj = session.exec(statement).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: Optional[int] = None) -> list[Habit]:
        """List habits for one user, or for everyone when user_id is None."""
        with self.session_factory() as session:
            statement = select(Habit).order_by(Habit.name)  # type: ignore[arg-type]
            if user_id is not None:
                statement = statement.where(Habit.user_id == user_id)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit) -> Habit:
        """Persist changes to an existing habit."""
        with self.session_factory() as session:
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit and all of its completions in one transaction."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            completions = session.exec(
                select(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
            ).all()
            for row in completions:
                session.delete(row)
            session.flush()
            session.delete(habit)
            session.commit()
            return True

    # Completion history
    def list_completions(self, habit_id: int) -> list[HabitCompletion]:
        """Completions for one habit, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion)
                .where(HabitCompletion.habit_id == habit_id)
                .order_by(HabitCompletion.completed_at)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_completions_for_user(self, *, user_id: int) -> list[HabitCompletion]:
        """Every completion owned by a user, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(HabitCompletion)
                .where(HabitCompletion.user_id == user_id)
                .order_by(HabitCompletion.completed_at)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def record_completion(self, habit: Habit, completion: HabitCompletion) -> tuple[Habit, HabitCompletion]:
        """Save the updated habit and its new completion record together."""
        with self.session_factory() as session:
            merged = session.merge(habit)
            session.add(completion)
            session.commit()
            session.refresh(merged)
            session.refresh(completion)
            session.expunge(merged)
            session.expunge(completion)
            return merged, completion

    def remove_completion_day(self, habit: Habit, day: date) -> tuple[Habit, int]:
        """Save the updated habit and drop that day's completion records.

        Returns the saved habit and the number of completion rows removed.
        """
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        with self.session_factory() as session:
            merged = session.merge(habit)
            doomed = session.exec(
                select(HabitCompletion)
                .where(HabitCompletion.habit_id == habit.id)
                .where(HabitCompletion.completed_at >= start)
                .where(HabitCompletion.completed_at < end)
            ).all()
            for row in doomed:
                session.delete(row)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged, len(doomed)
