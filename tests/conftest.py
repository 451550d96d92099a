"""Pytest configuration and shared fixtures for HabitCoach tests.

Database fixtures build an isolated SQLite file per test; the tracker fixture
runs on a fixed clock so date arithmetic is reproducible.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from sqlmodel import select

from habitcoach.config import TestConfig
from habitcoach.infra.database import create_db_engine, create_session_factory, init_database
from habitcoach.infra.repositories import (
    SQLModelAchievementRepository,
    SQLModelHabitRepository,
    SQLModelInsightRepository,
    ensure_local_user,
)
from habitcoach.models import Habit, HabitCompletion, User
from habitcoach.services.habits import HabitTracker
from habitcoach.services.snapshots import SnapshotFeed

FIXED_NOW = datetime(2024, 3, 15, 9, 30)
FIXED_TODAY = FIXED_NOW.date()


def days_ago(n: int, *, today: date = FIXED_TODAY) -> date:
    return today - timedelta(days=n)


class FakeGenerator:
    """Records prompts and answers with canned text (or raises)."""

    def __init__(self, reply: str = "Generated insight text", *, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path) -> TestConfig:
    return TestConfig(data_dir=tmp_path)


@pytest.fixture
def db_engine(test_config):
    """Fresh SQLite database with all tables created."""
    engine = create_db_engine(test_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def user(session_factory) -> User:
    return ensure_local_user(session_factory, display_name="Tester")


@pytest.fixture
def other_user(session_factory) -> User:
    with session_factory() as session:
        row = session.exec(select(User).where(User.username == "someone-else")).first()
        if row is None:
            row = User(username="someone-else")
            session.add(row)
            session.commit()
            session.refresh(row)
        session.expunge(row)
        return row


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def achievement_repo(session_factory) -> SQLModelAchievementRepository:
    return SQLModelAchievementRepository(session_factory)


@pytest.fixture
def insight_repo(session_factory) -> SQLModelInsightRepository:
    return SQLModelInsightRepository(session_factory)


@pytest.fixture
def feed() -> SnapshotFeed:
    return SnapshotFeed()


@pytest.fixture
def tracker(habit_repo, achievement_repo, insight_repo, feed) -> HabitTracker:
    """Tracker without a generator, pinned to FIXED_NOW."""
    return HabitTracker(
        habit_repo,
        achievement_repo,
        insight_repo,
        feed=feed,
        clock=lambda: FIXED_NOW,
    )


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(habit_repo, user):
    """Persist habits with sensible defaults."""

    def _create_habit(
        name: str = "Exercise",
        frequency: str = "daily",
        completed_dates: list[str] | None = None,
        streak: int = 0,
        created_at: datetime | None = None,
        owner: User | None = None,
    ) -> Habit:
        return habit_repo.create(
            Habit(
                user_id=(owner or user).id,
                name=name,
                frequency=frequency,
                completed_dates=list(completed_dates or []),
                streak=streak,
                created_at=created_at or FIXED_NOW - timedelta(days=30),
            )
        )

    return _create_habit


def make_habit(
    name: str = "Exercise",
    frequency: str = "daily",
    *,
    habit_id: int = 1,
    user_id: int = 1,
    streak: int = 0,
    completed_dates: list[str] | None = None,
    created_at: datetime | None = None,
) -> Habit:
    """Unsaved habit for pure-function tests."""
    return Habit(
        id=habit_id,
        user_id=user_id,
        name=name,
        frequency=frequency,
        streak=streak,
        completed_dates=list(completed_dates or []),
        created_at=created_at or FIXED_NOW - timedelta(days=30),
    )


def make_completions(stamps, *, habit_id: int = 1, user_id: int = 1) -> list[HabitCompletion]:
    return [HabitCompletion(habit_id=habit_id, user_id=user_id, completed_at=s) for s in stamps]
