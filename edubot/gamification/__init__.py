"""
Gamification core for EduBot

This module implements the scoring and insight engine:
- Event scoring (credits, experience, points) and linear leveling
- Counter progression with level-up bonuses and credit spending
- Insight derivation from question responses
- Leaderboard ranking
- Achievements and activity/question catalogs
"""

from edubot.gamification.scoring import ScoreDelta, score_event, calculate_level_from_xp
from edubot.gamification.progression import ProgressionResult, apply_delta, spend_credits
from edubot.gamification.insights import (
    build_insight_snapshot,
    calculate_emotional_variability,
    detect_exhaustion,
    detect_reinforcement_areas,
    detect_vocational_interests,
)
from edubot.gamification.leaderboard import build_leaderboard
from edubot.gamification.achievements import check_achievements

__all__ = [
    "ScoreDelta",
    "score_event",
    "calculate_level_from_xp",
    "ProgressionResult",
    "apply_delta",
    "spend_credits",
    "build_insight_snapshot",
    "calculate_emotional_variability",
    "detect_exhaustion",
    "detect_reinforcement_areas",
    "detect_vocational_interests",
    "build_leaderboard",
    "check_achievements",
]
