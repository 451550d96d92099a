"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Frequency(str, Enum):
    """How often a habit is expected to be completed."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: object) -> Optional["Frequency"]:
        """Return the matching member, or None for missing/unknown values."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class Habit(SQLModel, table=True):
    """A user-defined habit with its authoritative set of completed days.

    ``streak`` is a cached projection of ``completed_dates``; the tracker
    service recomputes it whenever the dates change. ``completed_dates`` is
    always reassigned as a new list so the JSON column sees the change.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: Optional[str] = Field(default=None, max_length=255)
    frequency: str = Field(default=Frequency.DAILY.value, nullable=False, max_length=16)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.now, nullable=False)
    streak: int = Field(default=0, nullable=False, ge=0)
    completed_dates: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    last_completed: Optional[datetime] = Field(default=None)


class HabitCompletion(SQLModel, table=True):
    """Individual completion record, kept as history for statistics."""

    __tablename__: ClassVar[str] = "habit_completion"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    completed_at: datetime = Field(default_factory=datetime.now, nullable=False, index=True)
    notes: Optional[str] = Field(default=None, max_length=500)
