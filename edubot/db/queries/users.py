"""User counter queries"""
import logging
from typing import Optional
from edubot.db.connection import db

logger = logging.getLogger(__name__)

_USER_COLUMNS = "user_id, name, credits, level, experience, points, created_at"


async def create_user(user_id: str, name: str, credits: int) -> Optional[dict]:
    """
    Insert a new user with starting credits

    Returns:
        The created row, or None if the user already exists
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO edubot_users (user_id, name, credits, level, experience, points)
                VALUES (%s, %s, %s, 1, 0, 0)
                ON CONFLICT (user_id) DO NOTHING
                RETURNING {_USER_COLUMNS}
                """,
                (user_id, name, credits)
            )
            row = await cur.fetchone()
            await db.commit(conn)

            if row:
                logger.info(f"Created user {user_id}")
            return dict(row) if row else None


async def get_user(user_id: str) -> Optional[dict]:
    """Get a user's counters"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {_USER_COLUMNS} FROM edubot_users WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def update_user_counters(user_id: str, counters: dict) -> None:
    """
    Write back a user's counters

    Args:
        user_id: User identifier
        counters: Dict with credits, level, experience, points
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                UPDATE edubot_users
                SET credits = %s,
                    level = %s,
                    experience = %s,
                    points = %s,
                    updated_at = CURRENT_TIMESTAMP
                WHERE user_id = %s
                """,
                (
                    counters['credits'],
                    counters['level'],
                    counters['experience'],
                    counters['points'],
                    user_id
                )
            )
            await db.commit(conn)


async def list_users() -> list[dict]:
    """All users in creation order"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {_USER_COLUMNS} FROM edubot_users ORDER BY created_at ASC, user_id ASC"
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]

