"""Unit tests for database queries"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from edubot.db import queries
from edubot.db.connection import Database


def _mock_connection(cursor):
    conn = AsyncMock()
    conn.cursor = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = cursor
    conn.commit = AsyncMock()
    return conn


# ============================================================================
# User queries
# ============================================================================

@pytest.mark.asyncio
async def test_create_user_new():
    mock_cursor = AsyncMock()
    mock_cursor.fetchone = AsyncMock(return_value={"user_id": "u1", "credits": 100})
    mock_conn = _mock_connection(mock_cursor)

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        row = await queries.create_user("u1", "Ana", 100)

    sql, params = mock_cursor.execute.call_args[0]
    assert "INSERT INTO edubot_users" in sql
    assert "ON CONFLICT (user_id) DO NOTHING" in sql
    assert params == ("u1", "Ana", 100)
    assert row == {"user_id": "u1", "credits": 100}
    mock_conn.commit.assert_called_once()


@pytest.mark.asyncio
async def test_create_user_existing():
    mock_cursor = AsyncMock()
    mock_cursor.fetchone = AsyncMock(return_value=None)
    mock_conn = _mock_connection(mock_cursor)

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.create_user("u1", "Ana", 100) is None


@pytest.mark.asyncio
async def test_update_user_counters():
    mock_cursor = AsyncMock()
    mock_conn = _mock_connection(mock_cursor)

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        await queries.update_user_counters(
            "u1", {"credits": 60, "level": 2, "experience": 110, "points": 55}
        )

    sql, params = mock_cursor.execute.call_args[0]
    assert "UPDATE edubot_users" in sql
    assert params == (60, 2, 110, 55, "u1")
    mock_conn.commit.assert_called_once()


# ============================================================================
# Event queries
# ============================================================================

@pytest.mark.asyncio
@pytest.mark.parametrize("rowcount,expected", [(1, True), (0, False)])
async def test_append_event(rowcount, expected):
    mock_cursor = AsyncMock()
    mock_cursor.rowcount = rowcount
    mock_conn = _mock_connection(mock_cursor)
    event = {
        "id": "e1",
        "user_id": "u1",
        "kind": "chat_message_sent",
        "payload": {"message_id": "m1"},
        "occurred_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "emotional_variability": None,
    }

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.append_event(event) is expected

    sql, params = mock_cursor.execute.call_args[0]
    assert "ON CONFLICT (id) DO NOTHING" in sql
    assert params[0] == "e1"


@pytest.mark.asyncio
async def test_get_user_events_since_filters_in_sql():
    since = datetime(2024, 1, 1, tzinfo=timezone.utc)
    mock_cursor = AsyncMock()
    mock_cursor.fetchall = AsyncMock(return_value=[])
    mock_conn = _mock_connection(mock_cursor)

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.get_user_events("u1", since) == []

    sql, params = mock_cursor.execute.call_args[0]
    assert "occurred_at >= %s" in sql
    assert params == ("u1", since)


# ============================================================================
# Achievement queries
# ============================================================================

@pytest.mark.asyncio
async def test_add_unlocked_achievement_conflict():
    mock_cursor = AsyncMock()
    mock_cursor.rowcount = 0
    mock_conn = _mock_connection(mock_cursor)

    with patch('edubot.db.connection.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_conn

        assert await queries.add_unlocked_achievement("u1", "first_message") is False


# ============================================================================
# Transactions
# ============================================================================

def _database_with(conn):
    database = Database("postgresql://localhost/edubot_test")
    database._pool = MagicMock()
    database._pool.connection.return_value.__aenter__.return_value = conn
    return database


@pytest.mark.asyncio
async def test_transaction_shares_one_connection_and_commits_once():
    conn = _mock_connection(AsyncMock())
    database = _database_with(conn)

    async with database.transaction() as tx_conn:
        async with database.connection() as inner:
            assert inner is tx_conn
            await database.commit(inner)
        async with database.transaction() as nested:
            assert nested is tx_conn

    assert tx_conn is conn
    database._pool.connection.assert_called_once()
    conn.commit.assert_awaited_once()
    conn.rollback.assert_not_awaited()


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error():
    conn = _mock_connection(AsyncMock())
    database = _database_with(conn)

    with pytest.raises(RuntimeError):
        async with database.transaction():
            async with database.connection() as inner:
                await database.commit(inner)
            raise RuntimeError("counter update failed")

    conn.rollback.assert_awaited_once()
    conn.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_commit_outside_transaction():
    conn = _mock_connection(AsyncMock())
    database = _database_with(conn)

    async with database.connection() as inner:
        await database.commit(inner)

    conn.commit.assert_awaited_once()
