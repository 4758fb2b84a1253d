"""
Scoring Engine

Maps events to credit / experience / point deltas and experience to levels.

Leveling Curve:
- Linear: 100 XP per level, level = floor(XP / 100) + 1

Reward Rules:
- Chat message sent: 5 credits, 10 XP, 5 points
- Question answered: 10 credits, 20 XP, 10 points
- Activity completed: activity points as credits and points, 2x as XP
- Unknown kinds: zero delta, flagged so callers can log and continue
"""

from dataclasses import dataclass
from typing import Dict, Union
import logging

from edubot.models.event import EventKind

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 100

FIXED_REWARDS: Dict[EventKind, Dict[str, int]] = {
    EventKind.CHAT_MESSAGE_SENT: {"credits": 5, "experience": 10, "points": 5},
    EventKind.QUESTION_ANSWERED: {"credits": 10, "experience": 20, "points": 10},
}

ACTIVITY_XP_MULTIPLIER = 2


@dataclass(frozen=True)
class ScoreDelta:
    """Counter changes produced by one event"""
    credits: int = 0
    experience: int = 0
    points: int = 0
    unknown_kind: bool = False

    @classmethod
    def unknown(cls) -> "ScoreDelta":
        return cls(unknown_kind=True)

    @property
    def is_zero(self) -> bool:
        return self.credits == 0 and self.experience == 0 and self.points == 0

    def to_dict(self) -> Dict[str, int]:
        return {"credits": self.credits, "experience": self.experience, "points": self.points}


def calculate_level_from_xp(total_xp: int) -> Dict[str, int]:
    """
    Calculate level progress from total XP

    Returns:
        {
            'current_level': int,
            'xp_in_current_level': int,
            'xp_to_next_level': int,
            'total_xp_for_next_level': int
        }
    """
    total_xp = max(total_xp, 0)
    level = total_xp // XP_PER_LEVEL + 1
    xp_in_level = total_xp % XP_PER_LEVEL

    return {
        "current_level": level,
        "xp_in_current_level": xp_in_level,
        "xp_to_next_level": XP_PER_LEVEL - xp_in_level,
        "total_xp_for_next_level": level * XP_PER_LEVEL,
    }


def score_event(kind: Union[EventKind, str], base_amount: int = 0) -> ScoreDelta:
    """
    Calculate the reward delta for an event kind

    Args:
        kind: Event kind (enum or its string value)
        base_amount: Activity points for activity_completed, ignored otherwise

    Returns:
        ScoreDelta; unknown kinds yield a zero delta with unknown_kind=True
    """
    try:
        kind = EventKind(kind)
    except ValueError:
        logger.warning(f"Unknown event kind '{kind}', scoring as zero delta")
        return ScoreDelta.unknown()

    if kind == EventKind.ACTIVITY_COMPLETED:
        amount = max(base_amount, 0)
        return ScoreDelta(
            credits=amount,
            experience=amount * ACTIVITY_XP_MULTIPLIER,
            points=amount,
        )

    return ScoreDelta(**FIXED_REWARDS[kind])
