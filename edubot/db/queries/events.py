"""Event log queries (append-only)"""
import logging
from datetime import datetime
from typing import Optional
from psycopg.types.json import Jsonb
from edubot.db.connection import db

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "id, user_id, kind, payload, occurred_at, emotional_variability"


async def append_event(event: dict) -> bool:
    """
    Append an event to the log

    Args:
        event: Dict with id, user_id, kind, payload, occurred_at, emotional_variability

    Returns:
        True if inserted, False if an event with that id already exists
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO edubot_events (id, user_id, kind, payload, occurred_at, emotional_variability)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO NOTHING
                """,
                (
                    event['id'],
                    event['user_id'],
                    event['kind'],
                    Jsonb(event['payload']),
                    event['occurred_at'],
                    event.get('emotional_variability'),
                )
            )
            inserted = cur.rowcount == 1
            await db.commit(conn)
            return inserted


async def get_user_events(user_id: str, since: Optional[datetime] = None) -> list[dict]:
    """
    Get a user's events, oldest first

    Args:
        user_id: User identifier
        since: Only events at or after this time (None for full history)
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            if since is None:
                await cur.execute(
                    f"""
                    SELECT {_EVENT_COLUMNS}
                    FROM edubot_events
                    WHERE user_id = %s
                    ORDER BY occurred_at ASC
                    """,
                    (user_id,)
                )
            else:
                await cur.execute(
                    f"""
                    SELECT {_EVENT_COLUMNS}
                    FROM edubot_events
                    WHERE user_id = %s AND occurred_at >= %s
                    ORDER BY occurred_at ASC
                    """,
                    (user_id, since)
                )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
