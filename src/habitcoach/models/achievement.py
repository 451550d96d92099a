"""Unlocked milestone records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class AchievementType(str, Enum):
    STREAK_MILESTONE = "STREAK_MILESTONE"
    COMPLETION_MILESTONE = "COMPLETION_MILESTONE"
    CONSISTENCY_MILESTONE = "CONSISTENCY_MILESTONE"
    SPECIAL_CHALLENGE = "SPECIAL_CHALLENGE"


class Achievement(SQLModel, table=True):
    """A milestone unlocked once per (user, type, target, habit); never edited."""

    __tablename__: ClassVar[str] = "achievement"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "target", "habit_id", name="uq_achievement_milestone"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    type: str = Field(nullable=False, max_length=32, index=True)
    name: str = Field(nullable=False, max_length=120)
    description: str = Field(default="", max_length=255)
    icon: str = Field(default="trophy", max_length=32)
    unlocked_at: datetime = Field(default_factory=datetime.now, nullable=False, index=True)
    progress: int = Field(default=0, nullable=False)
    target: int = Field(nullable=False)
    habit_id: Optional[int] = Field(default=None, foreign_key="habit.id", ondelete="SET NULL", index=True)

    @property
    def milestone_key(self) -> tuple[str, int, Optional[int]]:
        """Identity used to detect an already-unlocked milestone."""

        return (str(getattr(self.type, "value", self.type)), int(self.target), self.habit_id)
