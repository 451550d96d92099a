"""Repository implementations."""

from .achievement import SQLModelAchievementRepository, SQLModelInsightRepository
from .habit import SQLModelHabitRepository
from .user import LOCAL_USERNAME, ensure_local_user

__all__ = [
    "LOCAL_USERNAME",
    "SQLModelAchievementRepository",
    "SQLModelHabitRepository",
    "SQLModelInsightRepository",
    "ensure_local_user",
]
