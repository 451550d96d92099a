"""SQLModel table exports."""

from .achievement import Achievement, AchievementType
from .habit import Frequency, Habit, HabitCompletion
from .insight import Insight, InsightType
from .user import User

__all__ = [
    "Achievement",
    "AchievementType",
    "Frequency",
    "Habit",
    "HabitCompletion",
    "Insight",
    "InsightType",
    "User",
]
