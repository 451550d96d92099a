"""Rule-based habit coach.

``respond`` classifies one free-text message by ordered keyword matching
(first match wins) and answers from the current habit snapshot. It holds no
state and performs no I/O; ``CoachSession`` only keeps the visible
transcript for a chat front end.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..logging_config import get_logger
from ..models.habit import Frequency
from .dates import day_key

logger = get_logger(__name__)


class HabitView(Protocol):
    """The habit fields the coach reads."""

    name: str
    frequency: str
    streak: int
    completed_dates: list[str]


MEDITATION_TIPS = """Here are some specific tips for meditation:
• Start with just 5 minutes a day and gradually increase
• Choose a quiet, comfortable spot
• Set a consistent time (many find morning works best)
• Use guided meditation apps if you're just starting
• Focus on your breath as an anchor
• Don't worry about "clearing your mind" - just observe thoughts without judgment
• Track your sessions in the app to build momentum

Would you like more specific meditation techniques?"""

GENERIC_TIPS = """Here are some tips for {name}:
• Set a specific time each day for this habit
• Start small and gradually increase
• Track your progress in the app
• Celebrate small wins
• Use the streak feature to stay motivated

Would you like more specific advice for this habit?"""

TIPS_HELP_MESSAGE = (
    "I can help with specific habits! Just tell me which habit you'd like tips for. "
    "For example, try asking 'How to improve meditation?' or 'Tips for exercise'"
)

NO_HABITS_MESSAGE = (
    "You haven't created any habits yet. Would you like help creating your first habit?"
)
NONE_COMPLETED_MESSAGE = (
    "You haven't completed any habits yet today. Would you like help getting started?"
)
STREAK_STARTER_MESSAGE = (
    "You're just getting started! Every journey begins with a single step. "
    "Would you like help building your first streak?"
)

HELP_MESSAGE = """I can help you with:
• Getting tips for specific habits (ask 'how to' or 'tips for' followed by habit name)
• Checking your daily progress
• Tracking your streaks
• Understanding your habit schedule
• Getting information about specific habits (ask 'about' followed by habit name)
What would you like to know?"""

FALLBACK_MESSAGE = (
    "I can help you with your habits! Try asking about:\n"
    "• How to improve a specific habit\n"
    "• Your current progress\n"
    "• Your streaks\n"
    "• Your habit schedule\n"
    "• Information about a specific habit"
)

_IMPROVE_RE = re.compile(r"improve (?:my )?([a-z\s]+)")
_ABOUT_RE = re.compile(r"\babout\b(.*)", re.DOTALL)
_TRAILING_HABIT_RE = re.compile(r"\s+habit$")
_PUNCTUATION = " \t\n.,!?;:'\""


def _clean_query(text: Optional[str]) -> str:
    if not text:
        return ""
    cleaned = text.strip(_PUNCTUATION)
    return _TRAILING_HABIT_RE.sub("", cleaned).strip(_PUNCTUATION)


def _streak(habit: HabitView) -> int:
    return int(getattr(habit, "streak", 0) or 0)


def _streak_lines(habits: Sequence[HabitView]) -> str:
    return "\n".join(f"• {h.name}: {_streak(h)} days" for h in habits)


def _is_done_on(habit: HabitView, key: str) -> bool:
    return key in set(getattr(habit, "completed_dates", None) or ())


def find_habit(query: str, habits: Sequence[HabitView], *, bidirectional: bool = True) -> Optional[HabitView]:
    """First habit whose lowercase name contains the query (or vice versa)."""

    if not query:
        return None
    for habit in habits:
        name = (habit.name or "").strip().lower()
        if not name:
            continue
        if query in name or (bidirectional and name in query):
            return habit
    return None


def _extract_tip_subject(message: str) -> str:
    if "how to" in message:
        return _clean_query(message.split("how to", 1)[1])
    if "tips for" in message:
        return _clean_query(message.split("tips for", 1)[1])
    match = _IMPROVE_RE.search(message)
    return _clean_query(match.group(1)) if match else ""


def _tips_reply(message: str, habits: Sequence[HabitView]) -> str:
    habit = find_habit(_extract_tip_subject(message), habits)
    if habit is None:
        return TIPS_HELP_MESSAGE
    if "meditation" in habit.name.lower():
        return MEDITATION_TIPS
    return GENERIC_TIPS.format(name=habit.name)


def _progress_reply(habits: Sequence[HabitView], today_key: str) -> str:
    if not habits:
        return NO_HABITS_MESSAGE
    completed = [h for h in habits if _is_done_on(h, today_key)]
    if len(completed) == len(habits):
        return (
            f"Great job! You've completed all {len(habits)} habits for today. "
            f"Your current streaks:\n{_streak_lines(habits)}"
        )
    if completed:
        remaining = [h for h in habits if not _is_done_on(h, today_key)]
        return (
            f"You've completed {len(completed)} out of {len(habits)} habits today:\n"
            f"Completed: {', '.join(h.name for h in completed)}\n"
            f"Remaining: {', '.join(h.name for h in remaining)}"
        )
    return NONE_COMPLETED_MESSAGE


def _streak_reply(habits: Sequence[HabitView]) -> str:
    best = max((_streak(h) for h in habits), default=0)
    if best <= 0:
        return STREAK_STARTER_MESSAGE
    best_habit = next(h for h in habits if _streak(h) == best)
    return (
        f"Your best streak is {best} days with {best_habit.name}! "
        f"Current streaks:\n{_streak_lines(habits)}"
    )


def _schedule_reply(habits: Sequence[HabitView]) -> str:
    def _names(freq: Frequency) -> str:
        names = [h.name for h in habits if Frequency.parse(h.frequency) is freq]
        return ", ".join(names) or "None"

    return (
        "Your habits are scheduled as follows:\n"
        f"Daily: {_names(Frequency.DAILY)}\n"
        f"Weekly: {_names(Frequency.WEEKLY)}\n"
        f"Monthly: {_names(Frequency.MONTHLY)}"
    )


def _about_reply(message: str, habits: Sequence[HabitView], today_key: str) -> Optional[str]:
    match = _ABOUT_RE.search(message)
    if not match:
        return None
    habit = find_habit(_clean_query(match.group(1)), habits, bidirectional=False)
    if habit is None:
        return None
    frequency = Frequency.parse(habit.frequency)
    status = "Completed" if _is_done_on(habit, today_key) else "Not completed"
    return (
        f"About {habit.name}:\n"
        f"• Frequency: {frequency.value if frequency else habit.frequency}\n"
        f"• Current streak: {_streak(habit)} days\n"
        f"• Status today: {status}\n"
        f"• Total completions: {len(set(habit.completed_dates or ()))}"
    )


def respond(message: str, habits: Sequence[HabitView], *, today: Optional[date] = None) -> str:
    """Answer one coach message from the given habit snapshot."""

    text = (message or "").strip().lower()
    today_key = day_key(today or date.today())

    if "how to" in text or "tips for" in text or "improve" in text:
        return _tips_reply(text, habits)
    if "progress" in text or "status" in text:
        return _progress_reply(habits, today_key)
    if "streak" in text or "record" in text:
        return _streak_reply(habits)
    if "frequency" in text or "schedule" in text:
        return _schedule_reply(habits)

    about = _about_reply(text, habits, today_key)
    if about is not None:
        return about

    if "help" in text or "what can you do" in text:
        return HELP_MESSAGE
    logger.debug("No coach rule matched %r", text)
    return FALLBACK_MESSAGE


def welcome_message(name: Optional[str] = None) -> str:
    return (
        f"Hi {name or 'Friend'}! 👋 I'm your Health Coach! I can help you track your habits, "
        "stay motivated, and achieve your health goals. "
        "What would you like to know about your habits?"
    )


@dataclass(slots=True)
class ChatMessage:
    text: str
    is_user: bool
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class CoachSession:
    """Visible chat transcript: a welcome line followed by user/coach turns."""

    user_name: Optional[str] = None
    messages: list[ChatMessage] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.messages:
            self.messages.append(ChatMessage(text=welcome_message(self.user_name), is_user=False))

    def send(
        self, text: str, habits: Sequence[HabitView], *, today: Optional[date] = None
    ) -> Optional[ChatMessage]:
        """Record a user message and the coach reply; blank input is ignored."""

        if not text or not text.strip():
            return None
        self.messages.append(ChatMessage(text=text.strip(), is_user=True))
        reply = ChatMessage(text=respond(text, habits, today=today), is_user=False)
        self.messages.append(reply)
        return reply


__all__ = [
    "CoachSession",
    "ChatMessage",
    "FALLBACK_MESSAGE",
    "HELP_MESSAGE",
    "MEDITATION_TIPS",
    "NO_HABITS_MESSAGE",
    "find_habit",
    "respond",
    "welcome_message",
]
