"""Insight records: generated prose plus a deterministic weekly summary.

Generated insights go through a ``TextGenerator``: anything with a
``generate(prompt) -> str`` method. Generation is best-effort; a failing
provider costs the insight, never the completion that triggered it.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from openai import OpenAI

from ..logging_config import get_logger
from ..models.habit import Habit
from ..models.insight import Insight, InsightType
from .stats import HabitStats

logger = get_logger(__name__)

PATTERN_RELEVANCE = 0.8
IMPROVEMENT_RELEVANCE = 0.9
WEEKLY_SUMMARY_RELEVANCE = 0.7


class TextGenerator(Protocol):
    """External generative-text capability."""

    def generate(self, prompt: str) -> str:  # pragma: no cover - interface
        ...


class OpenAITextGenerator:
    """``TextGenerator`` backed by the OpenAI chat completions API."""

    def __init__(self, *, api_key: str, model: str, max_tokens: int = 600, timeout: float = 30.0):
        self.model = model
        self.max_tokens = max_tokens
        self.client = OpenAI(api_key=api_key, timeout=timeout)

    def generate(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
        )
        content = response.choices[0].message.content
        return (content or "").strip()


def build_pattern_prompt(habit: Habit, stats: HabitStats) -> str:
    return (
        "Analyze this habit data and identify patterns:\n"
        f"Habit: {habit.name}\n"
        f"Frequency: {habit.frequency}\n"
        f"Current Streak: {habit.streak}\n"
        f"Weekly Stats: {json.dumps(stats.weekly_buckets, sort_keys=True)}\n"
        f"Monthly Stats: {json.dumps(stats.monthly_buckets, sort_keys=True)}\n"
        f"Time of Day Stats: {json.dumps(stats.time_of_day, sort_keys=True)}\n"
        f"Consistency Score: {stats.consistency_score}\n"
        "\n"
        "Provide insights about:\n"
        "1. Best performing times/days\n"
        "2. Patterns in completion\n"
        "3. Areas for improvement\n"
        "4. Success factors"
    )


def build_improvement_prompt(habit: Habit, stats: HabitStats) -> str:
    return (
        "Based on this habit data, provide specific, actionable suggestions for improvement:\n"
        f"Habit: {habit.name}\n"
        f"Current Stats: {json.dumps(stats.to_dict(), sort_keys=True)}\n"
        "\n"
        "Focus on:\n"
        "1. Specific, actionable steps\n"
        "2. Evidence-based recommendations\n"
        "3. Personalized suggestions based on patterns\n"
        "4. Short-term and long-term improvements"
    )


def _generate(generator: TextGenerator, prompt: str, *, habit_id: Optional[int], kind: InsightType) -> Optional[str]:
    try:
        text = generator.generate(prompt)
    except Exception as exc:
        logger.warning(
            "Insight generation failed: %s",
            exc,
            extra={"habit_id": habit_id, "insight_type": kind.value},
        )
        return None
    if not text or not text.strip():
        logger.warning("Insight generator returned no text", extra={"habit_id": habit_id})
        return None
    return text.strip()


def generate_insights(
    habit: Habit,
    stats: HabitStats,
    generator: TextGenerator,
    *,
    now: Optional[datetime] = None,
) -> list[Insight]:
    """Ask the generator for pattern and improvement insights on one habit."""

    generated_at = now or datetime.now()
    requests = (
        (InsightType.PATTERN_RECOGNITION, f"Patterns in {habit.name}", build_pattern_prompt, PATTERN_RELEVANCE),
        (InsightType.IMPROVEMENT_SUGGESTION, f"Improving {habit.name}", build_improvement_prompt, IMPROVEMENT_RELEVANCE),
    )

    insights: list[Insight] = []
    for kind, title, build_prompt, relevance in requests:
        text = _generate(generator, build_prompt(habit, stats), habit_id=habit.id, kind=kind)
        if text is None:
            continue
        insights.append(
            Insight(
                user_id=habit.user_id,
                type=kind.value,
                title=title,
                description=text,
                generated_at=generated_at,
                relevance=relevance,
                habit_id=habit.id,
            )
        )
    return insights


def weekly_summary(
    user_id: int,
    habits: Sequence[Habit],
    stats_by_habit: Mapping[int, HabitStats],
    *,
    now: Optional[datetime] = None,
) -> Optional[Insight]:
    """Summarize the trailing week across all habits without any generator."""

    tracked = [(h, stats_by_habit[h.id]) for h in habits if h.id in stats_by_habit]
    if not tracked:
        return None

    total = sum(s.last_week_completions for _, s in tracked)
    best_habit, best_stats = max(tracked, key=lambda pair: (pair[1].last_week_completions, pair[1].current_streak))

    lines = [f"You checked in {total} time(s) across {len(tracked)} habit(s) in the last 7 days."]
    if best_stats.last_week_completions > 0:
        lines.append(
            f"{best_habit.name} led the week with {best_stats.last_week_completions} check-in(s)."
        )

    action_items: list[str] = []
    for habit, stats in tracked:
        if stats.last_week_completions == 0:
            action_items.append(f"Pick a fixed time for {habit.name} this week")
        elif stats.current_streak > 0:
            action_items.append(f"Keep your {stats.current_streak}-period {habit.name} streak going")

    return Insight(
        user_id=user_id,
        type=InsightType.WEEKLY_SUMMARY.value,
        title="Your week in review",
        description=" ".join(lines),
        generated_at=now or datetime.now(),
        relevance=WEEKLY_SUMMARY_RELEVANCE,
        action_items=action_items or None,
    )


__all__ = [
    "OpenAITextGenerator",
    "TextGenerator",
    "build_improvement_prompt",
    "build_pattern_prompt",
    "generate_insights",
    "weekly_summary",
]
