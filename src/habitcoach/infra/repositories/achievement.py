"""SQLModel implementation of the achievement and insight repositories."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.achievement import Achievement
from ...models.insight import Insight


class SQLModelAchievementRepository:
    """Append-only store of unlocked achievements."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def list_for_user(self, *, user_id: int, habit_id: Optional[int] = None) -> list[Achievement]:
        """Achievements for a user (optionally one habit), newest first."""
        with self.session_factory() as session:
            statement = select(Achievement).where(Achievement.user_id == user_id)
            if habit_id is not None:
                statement = statement.where(Achievement.habit_id == habit_id)
            statement = statement.order_by(Achievement.unlocked_at.desc())  # type: ignore[attr-defined]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def add_many(self, achievements: Iterable[Achievement]) -> list[Achievement]:
        """Insert new achievement records."""
        items = list(achievements)
        if not items:
            return []
        with self.session_factory() as session:
            session.add_all(items)
            session.commit()
            for item in items:
                session.refresh(item)
            session.expunge_all()
            return items


class SQLModelInsightRepository:
    """Append-only store of generated insights."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def list_for_user(self, *, user_id: int, limit: Optional[int] = None) -> list[Insight]:
        """Insights for a user, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Insight)
                .where(Insight.user_id == user_id)
                .order_by(Insight.generated_at.desc())  # type: ignore[attr-defined]
            )
            if limit is not None:
                statement = statement.limit(limit)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def add_many(self, insights: Iterable[Insight]) -> list[Insight]:
        """Insert new insight records."""
        items = list(insights)
        if not items:
            return []
        with self.session_factory() as session:
            session.add_all(items)
            session.commit()
            for item in items:
                session.refresh(item)
            session.expunge_all()
            return items
