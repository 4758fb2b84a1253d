"""Unit tests for the scoring engine (edubot/gamification/scoring.py)"""
import pytest

from edubot.gamification.scoring import ScoreDelta, calculate_level_from_xp, score_event
from edubot.models.event import EventKind


# ============================================================================
# Reward Table Tests
# ============================================================================

def test_chat_message_reward():
    delta = score_event(EventKind.CHAT_MESSAGE_SENT)
    assert delta == ScoreDelta(credits=5, experience=10, points=5)
    assert delta.unknown_kind is False


def test_question_answered_reward():
    delta = score_event("question_answered")
    assert delta.to_dict() == {"credits": 10, "experience": 20, "points": 10}


def test_question_reward_ignores_base_amount():
    """Fixed rewards do not scale with the base amount"""
    assert score_event(EventKind.QUESTION_ANSWERED, base_amount=500) == score_event(EventKind.QUESTION_ANSWERED)


def test_activity_completed_scales_with_points():
    delta = score_event(EventKind.ACTIVITY_COMPLETED, base_amount=50)
    assert delta.credits == 50
    assert delta.experience == 100
    assert delta.points == 50


def test_activity_completed_zero_points():
    delta = score_event(EventKind.ACTIVITY_COMPLETED, base_amount=0)
    assert delta.is_zero
    assert delta.unknown_kind is False


def test_unknown_kind_yields_flagged_zero_delta():
    """Unknown kinds are reported, not raised"""
    delta = score_event("badge_collected", base_amount=40)
    assert delta.is_zero
    assert delta.unknown_kind is True


def test_score_event_is_pure():
    assert score_event(EventKind.ACTIVITY_COMPLETED, 25) == score_event(EventKind.ACTIVITY_COMPLETED, 25)


# ============================================================================
# Level Calculation Tests
# ============================================================================

@pytest.mark.parametrize("xp,level", [
    (0, 1),
    (99, 1),
    (100, 2),
    (199, 2),
    (250, 3),
    (1000, 11),
])
def test_level_is_floor_of_xp_over_100_plus_one(xp, level):
    assert calculate_level_from_xp(xp)["current_level"] == level


def test_level_progress_fields():
    result = calculate_level_from_xp(130)
    assert result["xp_in_current_level"] == 30
    assert result["xp_to_next_level"] == 70
    assert result["total_xp_for_next_level"] == 200


def test_negative_xp_is_level_one():
    result = calculate_level_from_xp(-50)
    assert result["current_level"] == 1
    assert result["xp_to_next_level"] == 100
