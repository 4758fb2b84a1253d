"""
Leaderboard Builder

Ranks users by points, descending. Ties keep the input order (user creation
order from the repository), so positions are always 1..N with no gaps.

Full scan per request; a sorted index would be needed for large user counts.
"""

from typing import Iterable, List

from edubot.models.leaderboard import LeaderboardEntry
from edubot.models.user import UserStats

DEFAULT_LEADERBOARD_LIMIT = 10


def build_leaderboard(
    users: Iterable[UserStats],
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
) -> List[LeaderboardEntry]:
    """Top `limit` users by points with 1-based positions"""
    if limit <= 0:
        return []

    # sorted() is stable, so equal points stay in arrival order
    ranked = sorted(users, key=lambda u: u.points, reverse=True)[:limit]

    return [
        LeaderboardEntry(
            position=index + 1,
            user_id=user.user_id,
            name=user.name,
            points=user.points,
            level=user.level,
        )
        for index, user in enumerate(ranked)
    ]
