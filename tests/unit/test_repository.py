"""Unit tests for repository implementations"""

import pytest
import psycopg
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from edubot.exceptions import ConnectionError, QueryError
from edubot.models.event import Event
from edubot.models.user import UserStats
from edubot.repository import InMemoryRepository, PostgresRepository


# ============================================================================
# InMemoryRepository
# ============================================================================

@pytest.mark.asyncio
async def test_memory_create_and_get(repository):
    created = await repository.create_user("u1", "Ana", 100)
    assert created.credits == 100
    assert await repository.get_user("u1") == created
    assert await repository.get_user("u2") is None


@pytest.mark.asyncio
async def test_memory_create_duplicate(repository):
    await repository.create_user("u1", "Ana", 100)
    assert await repository.create_user("u1", "Otra", 50) is None
    assert (await repository.get_user("u1")).name == "Ana"


@pytest.mark.asyncio
async def test_memory_users_in_creation_order(repository):
    for user_id in ["z", "a", "m"]:
        await repository.create_user(user_id, "", 0)
    assert [u.user_id for u in await repository.list_users()] == ["z", "a", "m"]


@pytest.mark.asyncio
async def test_memory_event_dedup(repository):
    event = Event(id="e1", user_id="u1", kind="chat_message_sent")
    assert await repository.append_event(event) is True
    assert await repository.append_event(event) is False
    assert [e.id for e in await repository.list_events("u1")] == ["e1"]


@pytest.mark.asyncio
async def test_memory_events_oldest_first_and_since(repository):
    now = datetime.now(timezone.utc)
    late = Event(user_id="u1", kind="chat_message_sent", occurred_at=now)
    early = Event(user_id="u1", kind="chat_message_sent", occurred_at=now - timedelta(days=10))
    other = Event(user_id="u2", kind="chat_message_sent", occurred_at=now)
    for event in (late, early, other):
        await repository.append_event(event)

    assert await repository.list_events("u1") == [early, late]
    assert await repository.list_events("u1", since=now - timedelta(days=1)) == [late]


@pytest.mark.asyncio
async def test_memory_achievements(repository):
    assert await repository.add_unlocked_achievement("u1", "first_message") is True
    assert await repository.add_unlocked_achievement("u1", "first_message") is False
    unlocked = await repository.get_unlocked_achievements("u1")
    assert [a.achievement_id for a in unlocked] == ["first_message"]
    assert await repository.get_unlocked_achievements("u2") == []


@pytest.mark.asyncio
async def test_memory_transaction_rolls_back_on_error(repository):
    before = await repository.create_user("u1", "Ana", 100)
    await repository.append_event(Event(id="e0", user_id="u1", kind="chat_message_sent"))

    with pytest.raises(RuntimeError):
        async with repository.transaction():
            await repository.append_event(Event(id="e1", user_id="u1", kind="chat_message_sent"))
            await repository.add_unlocked_achievement("u1", "first_message")
            await repository.save_user(before.model_copy(update={"credits": 130}))
            raise RuntimeError("write failed")

    assert await repository.get_user("u1") == before
    assert [e.id for e in await repository.list_events("u1")] == ["e0"]
    assert await repository.get_unlocked_achievements("u1") == []
    # The rolled-back id is free again
    assert await repository.append_event(Event(id="e1", user_id="u1", kind="chat_message_sent")) is True


@pytest.mark.asyncio
async def test_memory_transaction_commits_and_nests(repository):
    await repository.create_user("u1", "Ana", 100)

    async with repository.transaction():
        await repository.append_event(Event(id="e1", user_id="u1", kind="chat_message_sent"))
        async with repository.transaction():
            await repository.add_unlocked_achievement("u1", "first_message")

    assert [e.id for e in await repository.list_events("u1")] == ["e1"]
    assert len(await repository.get_unlocked_achievements("u1")) == 1

    # Writes outside a transaction are not journaled
    await repository.append_event(Event(id="e2", user_id="u1", kind="chat_message_sent"))
    with pytest.raises(RuntimeError):
        async with repository.transaction():
            raise RuntimeError("nothing written")
    assert [e.id for e in await repository.list_events("u1")] == ["e1", "e2"]


# ============================================================================
# PostgresRepository
# ============================================================================

@pytest.mark.asyncio
async def test_postgres_get_user_maps_row():
    row = {
        "user_id": "u1", "name": "Ana", "credits": 120, "level": 2,
        "experience": 140, "points": 20, "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    with patch('edubot.db.queries.get_user', new=AsyncMock(return_value=row)):
        stats = await PostgresRepository().get_user("u1")

    assert isinstance(stats, UserStats)
    assert stats.level == 2
    assert stats.credits == 120


@pytest.mark.asyncio
async def test_postgres_create_user_conflict():
    with patch('edubot.db.queries.create_user', new=AsyncMock(return_value=None)):
        assert await PostgresRepository().create_user("u1", "Ana", 100) is None


@pytest.mark.asyncio
async def test_postgres_save_user_sends_counters():
    stats = UserStats(user_id="u1", credits=50, level=3, experience=230, points=40)
    mock_update = AsyncMock()
    with patch('edubot.db.queries.update_user_counters', new=mock_update):
        await PostgresRepository().save_user(stats)

    mock_update.assert_awaited_once_with(
        "u1", {"credits": 50, "level": 3, "experience": 230, "points": 40}
    )


@pytest.mark.asyncio
async def test_postgres_append_event_serializes():
    event = Event(
        id="e1",
        user_id="u1",
        kind="question_answered",
        payload={"question_id": "3", "answer": "bien", "category": "emotional"},
        emotional_variability=7.0,
    )
    mock_append = AsyncMock(return_value=True)
    with patch('edubot.db.queries.append_event', new=mock_append):
        assert await PostgresRepository().append_event(event) is True

    sent = mock_append.call_args[0][0]
    assert sent["id"] == "e1"
    assert sent["kind"] == "question_answered"
    assert sent["emotional_variability"] == 7.0
    assert isinstance(sent["occurred_at"], str)


@pytest.mark.asyncio
async def test_postgres_list_events_validates_rows():
    rows = [{
        "id": "e1",
        "user_id": "u1",
        "kind": "chat_message_sent",
        "payload": {},
        "occurred_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "emotional_variability": None,
    }]
    with patch('edubot.db.queries.get_user_events', new=AsyncMock(return_value=rows)):
        events = await PostgresRepository().list_events("u1")

    assert [e.id for e in events] == ["e1"]


@pytest.mark.asyncio
async def test_postgres_connection_failure_is_wrapped():
    failing = AsyncMock(side_effect=psycopg.OperationalError("connection refused"))
    with patch('edubot.db.queries.get_user', new=failing):
        with pytest.raises(ConnectionError) as exc_info:
            await PostgresRepository().get_user("u1")

    assert exc_info.value.operation == "get_user"


@pytest.mark.asyncio
async def test_postgres_query_failure_is_wrapped():
    failing = AsyncMock(side_effect=psycopg.errors.UndefinedTable("edubot_events"))
    with patch('edubot.db.queries.append_event', new=failing):
        with pytest.raises(QueryError) as exc_info:
            await PostgresRepository().append_event(Event(id="e9", user_id="u1", kind="chat_message_sent"))

    assert exc_info.value.context["event_id"] == "e9"


@pytest.mark.asyncio
async def test_postgres_transaction_uses_shared_connection():
    entered = []

    @asynccontextmanager
    async def fake_transaction():
        entered.append(True)
        yield MagicMock()

    with patch('edubot.repository.db.transaction', new=fake_transaction):
        async with PostgresRepository().transaction():
            pass

    assert entered == [True]


@pytest.mark.asyncio
async def test_postgres_transaction_commit_failure_is_wrapped():
    @asynccontextmanager
    async def failing_transaction():
        yield MagicMock()
        raise psycopg.OperationalError("server closed the connection")

    with patch('edubot.repository.db.transaction', new=failing_transaction):
        with pytest.raises(ConnectionError) as exc_info:
            async with PostgresRepository().transaction():
                pass

    assert exc_info.value.operation == "transaction"
