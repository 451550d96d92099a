"""Full-snapshot change feed for habit data.

Consumers subscribe a callback and receive the complete habit and completion
lists for a user after every mutation, instead of diffs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Protocol

from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion

logger = get_logger(__name__)


@dataclass(frozen=True)
class HabitSnapshot:
    """Immutable view of one user's habits at a point in time."""

    user_id: int
    habits: tuple[Habit, ...]
    completions: tuple[HabitCompletion, ...]
    taken_at: datetime = field(default_factory=datetime.now)

    def completions_for(self, habit_id: int) -> list[HabitCompletion]:
        return [c for c in self.completions if c.habit_id == habit_id]


class SnapshotListener(Protocol):
    """Callback receiving each published snapshot."""

    def __call__(self, snapshot: HabitSnapshot) -> None:  # pragma: no cover - interface
        ...


class SnapshotFeed:
    """Fan-out of habit snapshots to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: list[SnapshotListener] = []

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, snapshot: HabitSnapshot) -> None:
        """Deliver a snapshot to every listener; one failing listener does not block the rest."""

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)


__all__ = ["HabitSnapshot", "SnapshotFeed", "SnapshotListener"]
