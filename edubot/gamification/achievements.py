"""
Achievement System

Achievements unlock from the event log:
- Primer Mensaje: first chat message
- Estudiante Dedicado: chat on 7 consecutive days
- Experto en Chat: 100 chat messages

Unlocking grants the achievement's credits once. Checking is pure; the
service applies the credit reward and persists the unlock.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Set
import logging

from edubot.models.catalog import Achievement
from edubot.models.event import Event, EventKind

logger = logging.getLogger(__name__)


ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        id="first_message",
        title="Primer Mensaje",
        description="Envía tu primer mensaje al chatbot",
        icon="chatbubble",
        credits=25,
        criteria={"type": "message_count", "count": 1},
    ),
    Achievement(
        id="dedicated_student",
        title="Estudiante Dedicado",
        description="Usa el chatbot por 7 días consecutivos",
        icon="calendar",
        credits=100,
        criteria={"type": "consecutive_days", "days": 7},
    ),
    Achievement(
        id="chat_expert",
        title="Experto en Chat",
        description="Envía 100 mensajes",
        icon="chatbubbles",
        credits=200,
        criteria={"type": "message_count", "count": 100},
    ),
]

_ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str):
    return _ACHIEVEMENTS_BY_ID.get(achievement_id)


def longest_daily_streak(days: Iterable[date]) -> int:
    """Longest run of consecutive calendar days"""
    ordered = sorted(set(days))
    if not ordered:
        return 0

    longest = current = 1
    for previous, day in zip(ordered, ordered[1:]):
        if day - previous == timedelta(days=1):
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def _is_satisfied(criteria: Dict, chat_events: List[Event]) -> bool:
    if criteria["type"] == "message_count":
        return len(chat_events) >= criteria["count"]

    if criteria["type"] == "consecutive_days":
        days = (e.occurred_at.date() for e in chat_events)
        return longest_daily_streak(days) >= criteria["days"]

    logger.warning(f"Unknown achievement criteria type: {criteria['type']}")
    return False


def check_achievements(
    events: Iterable[Event],
    unlocked_ids: Iterable[str] = (),
) -> List[Achievement]:
    """
    Achievements newly satisfied by the event history

    Args:
        events: User's full event history
        unlocked_ids: Achievement ids already unlocked (never returned again)

    Returns:
        Achievements to unlock, in catalog order
    """
    already: Set[str] = set(unlocked_ids)
    chat_events = [e for e in events if e.kind == EventKind.CHAT_MESSAGE_SENT]

    return [
        achievement
        for achievement in ACHIEVEMENTS
        if achievement.id not in already and _is_satisfied(achievement.criteria, chat_events)
    ]
