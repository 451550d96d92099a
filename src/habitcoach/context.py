"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelAchievementRepository,
    SQLModelHabitRepository,
    SQLModelInsightRepository,
    ensure_local_user,
)
from .logging_config import get_logger
from .models.user import User
from .services.habits import HabitTracker
from .services.insights import OpenAITextGenerator, TextGenerator
from .services.snapshots import SnapshotFeed

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    session_factory: Callable[[], Session]

    habit_repo: SQLModelHabitRepository
    achievement_repo: SQLModelAchievementRepository
    insight_repo: SQLModelInsightRepository

    tracker: HabitTracker
    feed: SnapshotFeed

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("No active user profile")
        return self.current_user.id


def build_generator(config: BaseConfig) -> Optional[TextGenerator]:
    """Return the configured text generator, or None when generation is off."""

    if not config.generation_enabled:
        logger.info("No generative-text provider configured; generated insights disabled")
        return None
    return OpenAITextGenerator(api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL)


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    generator: Optional[TextGenerator] = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    user = ensure_local_user(session_factory)

    habit_repo = SQLModelHabitRepository(session_factory)
    achievement_repo = SQLModelAchievementRepository(session_factory)
    insight_repo = SQLModelInsightRepository(session_factory)
    feed = SnapshotFeed()

    tracker = HabitTracker(
        habit_repo,
        achievement_repo,
        insight_repo,
        generator=generator if generator is not None else build_generator(config),
        feed=feed,
        iso_weeks=config.ISO_WEEKS,
        insight_min_completions=config.INSIGHT_MIN_COMPLETIONS,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        habit_repo=habit_repo,
        achievement_repo=achievement_repo,
        insight_repo=insight_repo,
        tracker=tracker,
        feed=feed,
        current_user=user,
    )
