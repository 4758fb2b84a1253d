"""
Repository interface for users, events and achievements

GamificationService only talks to a GamificationRepository. Two
implementations:

- PostgresRepository: psycopg-backed, wraps driver errors into DatabaseError
- InMemoryRepository: process-local dicts for tests and database-less runs
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import psycopg

from edubot.db import queries
from edubot.db.connection import db
from edubot.exceptions import wrap_external_exception
from edubot.models.catalog import UserAchievement
from edubot.models.event import Event
from edubot.models.user import UserStats

logger = logging.getLogger(__name__)

# Undo steps recorded by InMemoryRepository writes inside transaction()
_undo_log: ContextVar[Optional[List[Callable[[], None]]]] = ContextVar("edubot_memory_undo", default=None)


class GamificationRepository(ABC):
    """Persistence collaborator for the gamification core"""

    @abstractmethod
    async def create_user(self, user_id: str, name: str, credits: int) -> Optional[UserStats]:
        """Create a user; None if the id is taken"""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserStats]:
        ...

    @abstractmethod
    async def save_user(self, stats: UserStats) -> None:
        """Write back counters for an existing user"""

    @abstractmethod
    async def list_users(self) -> List[UserStats]:
        """All users in creation order"""

    @abstractmethod
    async def append_event(self, event: Event) -> bool:
        """Append to the log; False if the event id already exists"""

    @abstractmethod
    async def list_events(self, user_id: str, since: Optional[datetime] = None) -> List[Event]:
        """User's events oldest first, optionally from `since` onward"""

    @abstractmethod
    async def get_unlocked_achievements(self, user_id: str) -> List[UserAchievement]:
        ...

    @abstractmethod
    async def add_unlocked_achievement(self, user_id: str, achievement_id: str) -> bool:
        """Record an unlock; False if already unlocked"""

    @abstractmethod
    def transaction(self):
        """
        Async context manager grouping writes into one unit

        Either every write in the block persists or none does. Nested blocks
        join the outer one.
        """


class PostgresRepository(GamificationRepository):
    """Repository backed by the edubot_* PostgreSQL tables"""

    @asynccontextmanager
    async def transaction(self):
        try:
            async with db.transaction():
                yield
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="transaction")

    async def create_user(self, user_id: str, name: str, credits: int) -> Optional[UserStats]:
        try:
            row = await queries.create_user(user_id, name, credits)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="create_user", user_id=user_id)
        return UserStats(**row) if row else None

    async def get_user(self, user_id: str) -> Optional[UserStats]:
        try:
            row = await queries.get_user(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_user", user_id=user_id)
        return UserStats(**row) if row else None

    async def save_user(self, stats: UserStats) -> None:
        try:
            await queries.update_user_counters(stats.user_id, stats.counters())
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="save_user", user_id=stats.user_id)

    async def list_users(self) -> List[UserStats]:
        try:
            rows = await queries.list_users()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_users")
        return [UserStats(**row) for row in rows]

    async def append_event(self, event: Event) -> bool:
        try:
            return await queries.append_event(event.model_dump(mode="json"))
        except psycopg.Error as e:
            raise wrap_external_exception(
                e, operation="append_event", user_id=event.user_id, context={"event_id": event.id}
            )

    async def list_events(self, user_id: str, since: Optional[datetime] = None) -> List[Event]:
        try:
            rows = await queries.get_user_events(user_id, since)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_events", user_id=user_id)
        return [Event.model_validate(row) for row in rows]

    async def get_unlocked_achievements(self, user_id: str) -> List[UserAchievement]:
        try:
            rows = await queries.get_unlocked_achievements(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_unlocked_achievements", user_id=user_id)
        return [UserAchievement(**row) for row in rows]

    async def add_unlocked_achievement(self, user_id: str, achievement_id: str) -> bool:
        try:
            return await queries.add_unlocked_achievement(user_id, achievement_id)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="add_unlocked_achievement",
                user_id=user_id,
                context={"achievement_id": achievement_id},
            )


class InMemoryRepository(GamificationRepository):
    """Process-local store. Data is lost on restart."""

    def __init__(self):
        self._users: Dict[str, UserStats] = {}
        self._events: Dict[str, Event] = {}
        self._events_by_user: Dict[str, List[Event]] = {}
        self._achievements: Dict[str, List[UserAchievement]] = {}

    @asynccontextmanager
    async def transaction(self):
        if _undo_log.get() is not None:
            yield
            return

        undo: List[Callable[[], None]] = []
        token = _undo_log.set(undo)
        try:
            yield
        except BaseException:
            for step in reversed(undo):
                step()
            logger.debug(f"Rolled back {len(undo)} in-memory writes")
            raise
        finally:
            _undo_log.reset(token)

    def _record_undo(self, step: Callable[[], None]) -> None:
        undo = _undo_log.get()
        if undo is not None:
            undo.append(step)

    async def create_user(self, user_id: str, name: str, credits: int) -> Optional[UserStats]:
        if user_id in self._users:
            return None
        stats = UserStats(user_id=user_id, name=name, credits=credits)
        self._users[user_id] = stats
        logger.debug(f"Created user {user_id} in memory store")
        return stats

    async def get_user(self, user_id: str) -> Optional[UserStats]:
        return self._users.get(user_id)

    async def save_user(self, stats: UserStats) -> None:
        previous = self._users.get(stats.user_id)
        if previous is not None:
            self._record_undo(lambda: self._users.__setitem__(stats.user_id, previous))
        self._users[stats.user_id] = stats

    async def list_users(self) -> List[UserStats]:
        # dicts preserve insertion order, which is creation order
        return list(self._users.values())

    async def append_event(self, event: Event) -> bool:
        if event.id in self._events:
            return False
        self._events[event.id] = event
        self._events_by_user.setdefault(event.user_id, []).append(event)
        self._record_undo(lambda: self._drop_event(event))
        return True

    async def list_events(self, user_id: str, since: Optional[datetime] = None) -> List[Event]:
        events = sorted(self._events_by_user.get(user_id, []), key=lambda e: e.occurred_at)
        if since is not None:
            events = [e for e in events if e.occurred_at >= since]
        return events

    async def get_unlocked_achievements(self, user_id: str) -> List[UserAchievement]:
        return list(self._achievements.get(user_id, []))

    async def add_unlocked_achievement(self, user_id: str, achievement_id: str) -> bool:
        unlocked = self._achievements.setdefault(user_id, [])
        if any(a.achievement_id == achievement_id for a in unlocked):
            return False
        unlocked.append(UserAchievement(
            user_id=user_id,
            achievement_id=achievement_id,
            unlocked_at=datetime.now(timezone.utc),
        ))
        self._record_undo(lambda: self._drop_achievement(user_id, achievement_id))
        return True

    def _drop_event(self, event: Event) -> None:
        self._events.pop(event.id, None)
        self._events_by_user[event.user_id] = [
            e for e in self._events_by_user.get(event.user_id, []) if e.id != event.id
        ]

    def _drop_achievement(self, user_id: str, achievement_id: str) -> None:
        self._achievements[user_id] = [
            a for a in self._achievements.get(user_id, []) if a.achievement_id != achievement_id
        ]
