"""Achievement and insight repository protocols."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from ...models.achievement import Achievement
from ...models.insight import Insight


class AchievementRepository(Protocol):
    def list_for_user(self, *, user_id: int, habit_id: Optional[int] = None) -> list[Achievement]:
        """Achievements for a user, newest first."""
        ...

    def add_many(self, achievements: Iterable[Achievement]) -> list[Achievement]:
        """Insert new achievement records."""
        ...


class InsightRepository(Protocol):
    def list_for_user(self, *, user_id: int, limit: Optional[int] = None) -> list[Insight]:
        """Insights for a user, newest first."""
        ...

    def add_many(self, insights: Iterable[Insight]) -> list[Insight]:
        """Insert new insight records."""
        ...
