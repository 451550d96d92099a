"""Generated insight records (append-only)."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class InsightType(str, Enum):
    PATTERN_RECOGNITION = "PATTERN_RECOGNITION"
    IMPROVEMENT_SUGGESTION = "IMPROVEMENT_SUGGESTION"
    MOTIVATION = "MOTIVATION"
    SUCCESS_PREDICTION = "SUCCESS_PREDICTION"
    WEEKLY_SUMMARY = "WEEKLY_SUMMARY"


class Insight(SQLModel, table=True):
    """Natural-language observation about a user's habits."""

    __tablename__: ClassVar[str] = "insight"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    type: str = Field(nullable=False, max_length=32, index=True)
    title: str = Field(nullable=False, max_length=200)
    description: str = Field(default="")
    generated_at: datetime = Field(default_factory=datetime.now, nullable=False, index=True)
    relevance: float = Field(default=0.5, nullable=False)
    habit_id: Optional[int] = Field(default=None, foreign_key="habit.id", ondelete="SET NULL", index=True)
    action_items: Optional[list[str]] = Field(default=None, sa_column=Column(JSON, nullable=True))
