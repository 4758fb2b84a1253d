"""Unlocked achievement queries"""
import logging
from edubot.db.connection import db

logger = logging.getLogger(__name__)


async def get_unlocked_achievements(user_id: str) -> list[dict]:
    """Unlocked achievements for a user, oldest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id, achievement_id, unlocked_at
                FROM edubot_user_achievements
                WHERE user_id = %s
                ORDER BY unlocked_at ASC
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def add_unlocked_achievement(user_id: str, achievement_id: str) -> bool:
    """
    Record an unlock

    Returns:
        False if the user already had it
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO edubot_user_achievements (user_id, achievement_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, achievement_id) DO NOTHING
                """,
                (user_id, achievement_id)
            )
            inserted = cur.rowcount == 1
            await db.commit(conn)
            return inserted
