"""
Prometheus metrics definitions for edubot.

Metrics are exposed at the /metrics endpoint for Prometheus scraping.
"""

import logging
from prometheus_client import Counter

logger = logging.getLogger(__name__)

# =============================================================================
# Gamification Metrics
# =============================================================================

gamification_events_total = Counter(
    "edubot_gamification_events_total",
    "Events processed by the scoring engine",
    ["kind", "status"],  # status: applied/duplicate/unknown_kind
)

level_ups_total = Counter(
    "edubot_level_ups_total",
    "Levels gained across all users",
)

credits_awarded_total = Counter(
    "edubot_credits_awarded_total",
    "Credits awarded, including level-up and achievement bonuses",
    ["source"],  # source: event/level_up/achievement
)

credits_spent_total = Counter(
    "edubot_credits_spent_total",
    "Credits spent by users",
)

achievements_unlocked_total = Counter(
    "edubot_achievements_unlocked_total",
    "Achievements unlocked",
    ["achievement_id"],
)

insight_requests_total = Counter(
    "edubot_insight_requests_total",
    "Insight snapshots derived",
)

# =============================================================================
# Error Metrics
# =============================================================================

errors_total = Counter(
    "edubot_errors_total",
    "Total errors by type and component",
    ["error_type", "component"],  # component: api/service/database
)
