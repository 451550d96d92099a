"""HabitCoach: habit streaks, statistics, achievements and a rule-based coach."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .context import create_app_context

__version__ = "0.1.0"

__all__ = ["BaseConfig", "DevConfig", "create_app_context"]
