"""Repository protocols the services depend on."""

from .achievement import AchievementRepository, InsightRepository
from .habit import HabitRepository

__all__ = ["AchievementRepository", "HabitRepository", "InsightRepository"]
