"""
Counter progression

Pure arithmetic over UserStats: applying score deltas (with level-up bonus)
and spending credits. Persistence and per-user locking live in
GamificationService.
"""

from dataclasses import dataclass
import logging

from edubot.exceptions import InsufficientCreditsError, ValidationError
from edubot.gamification.scoring import ScoreDelta, calculate_level_from_xp
from edubot.models.user import UserStats

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_UP_BONUS = 10


@dataclass(frozen=True)
class ProgressionResult:
    """Outcome of applying one delta"""
    stats: UserStats
    old_level: int
    new_level: int
    bonus_credits: int

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.old_level

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


def apply_delta(
    stats: UserStats,
    delta: ScoreDelta,
    level_up_bonus: int = DEFAULT_LEVEL_UP_BONUS,
) -> ProgressionResult:
    """
    Add a delta to the user's counters and recompute the level

    A level-up grants level_up_bonus credits per level gained, measured
    against the level held before this delta.

    Raises:
        ValidationError: If any delta component is negative
    """
    for field_name in ("credits", "experience", "points"):
        value = getattr(delta, field_name)
        if value < 0:
            raise ValidationError(
                f"Score deltas cannot be negative ({field_name}={value})",
                field=field_name,
                value=value,
                user_id=stats.user_id,
                operation="apply_delta",
            )

    old_level = stats.level
    new_experience = stats.experience + delta.experience
    new_level = calculate_level_from_xp(new_experience)["current_level"]

    bonus = 0
    if new_level > old_level:
        bonus = level_up_bonus * (new_level - old_level)
        logger.info(
            f"User {stats.user_id} leveled up from {old_level} to {new_level} "
            f"(+{bonus} bonus credits)"
        )

    updated = stats.model_copy(update={
        "credits": stats.credits + delta.credits + bonus,
        "experience": new_experience,
        "points": stats.points + delta.points,
        "level": new_level,
    })

    return ProgressionResult(
        stats=updated,
        old_level=old_level,
        new_level=new_level,
        bonus_credits=bonus,
    )


def spend_credits(stats: UserStats, amount: int) -> UserStats:
    """
    Deduct credits from the user's balance

    Raises:
        ValidationError: If amount is not positive
        InsufficientCreditsError: If amount exceeds the balance (stats unchanged)
    """
    if amount <= 0:
        raise ValidationError(
            "Spend amount must be positive",
            field="amount",
            value=amount,
            user_id=stats.user_id,
            operation="spend_credits",
        )

    if amount > stats.credits:
        raise InsufficientCreditsError(
            message=f"User {stats.user_id} tried to spend {amount} credits with {stats.credits} available",
            requested=amount,
            available=stats.credits,
            user_id=stats.user_id,
            operation="spend_credits",
        )

    return stats.model_copy(update={"credits": max(stats.credits - amount, 0)})
