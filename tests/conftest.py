"""Global test fixtures and utilities for edubot tests"""
import pytest
from datetime import datetime, timezone
from typing import Optional

from edubot.models.event import Event, EventKind
from edubot.models.user import UserStats
from edubot.repository import InMemoryRepository
from edubot.services.gamification_service import GamificationService


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def fresh_stats(test_user_id):
    """New user with starting credits"""
    return UserStats(user_id=test_user_id, name="Ana", credits=100)


# ============================================================================
# Event Fixtures
# ============================================================================

@pytest.fixture
def make_question_event(test_user_id):
    """Factory for question_answered events"""
    def _make(
        answer: str = "respuesta",
        category: Optional[str] = None,
        variability: Optional[float] = None,
        question_id: str = "q-1",
        occurred_at: Optional[datetime] = None,
    ) -> Event:
        payload = {"question_id": question_id, "answer": answer}
        if category is not None:
            payload["category"] = category
        return Event(
            user_id=test_user_id,
            kind=EventKind.QUESTION_ANSWERED,
            payload=payload,
            emotional_variability=variability,
            occurred_at=occurred_at or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        )
    return _make


@pytest.fixture
def make_chat_event(test_user_id):
    """Factory for chat_message_sent events"""
    def _make(occurred_at: Optional[datetime] = None) -> Event:
        return Event(
            user_id=test_user_id,
            kind=EventKind.CHAT_MESSAGE_SENT,
            occurred_at=occurred_at or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        )
    return _make


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def repository():
    """Empty in-memory repository"""
    return InMemoryRepository()


@pytest.fixture
def service(repository):
    """GamificationService with default rules and a fixed variability estimator"""
    return GamificationService(
        repository,
        starting_credits=100,
        level_up_bonus=10,
        chat_credits_required=50,
        leaderboard_limit=10,
        exhaustion_threshold=3.0,
        variability_estimator=lambda answer: 5.0,
    )


@pytest.fixture
async def registered_user(service, test_user_id):
    """A registered user with 100 starting credits"""
    return await service.register_user(test_user_id, "Ana")
