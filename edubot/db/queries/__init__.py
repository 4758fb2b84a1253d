"""
Database queries - Re-export all functions.

Module organization:
- users.py: User counters
- events.py: Append-only event log
- achievements.py: Unlocked achievements
"""

from edubot.db.queries.users import (
    create_user,
    get_user,
    update_user_counters,
    list_users,
)

from edubot.db.queries.events import (
    append_event,
    get_user_events,
)

from edubot.db.queries.achievements import (
    get_unlocked_achievements,
    add_unlocked_achievement,
)

__all__ = [
    "create_user",
    "get_user",
    "update_user_counters",
    "list_users",
    "append_event",
    "get_user_events",
    "get_unlocked_achievements",
    "add_unlocked_achievement",
]
