"""Unit tests for counter progression (edubot/gamification/progression.py)"""
import pytest

from edubot.exceptions import InsufficientCreditsError, ValidationError
from edubot.gamification.progression import apply_delta, spend_credits
from edubot.gamification.scoring import ScoreDelta, score_event
from edubot.models.event import EventKind
from edubot.models.user import UserStats


# ============================================================================
# apply_delta Tests
# ============================================================================

def test_apply_delta_adds_counters(fresh_stats):
    result = apply_delta(fresh_stats, ScoreDelta(credits=5, experience=10, points=5))

    assert result.stats.credits == 105
    assert result.stats.experience == 10
    assert result.stats.points == 5
    assert result.stats.level == 1
    assert result.leveled_up is False
    assert result.bonus_credits == 0


def test_apply_delta_does_not_mutate_input(fresh_stats):
    apply_delta(fresh_stats, ScoreDelta(credits=5, experience=150, points=5))
    assert fresh_stats.credits == 100
    assert fresh_stats.experience == 0


def test_five_answers_reach_level_two_with_one_bonus(fresh_stats):
    """100 starting credits + 5 x 10 rewards + one 10-credit level-up bonus"""
    stats = fresh_stats
    level_ups = 0
    for _ in range(5):
        result = apply_delta(stats, score_event(EventKind.QUESTION_ANSWERED))
        level_ups += result.levels_gained
        stats = result.stats

    assert stats.experience == 100
    assert stats.level == 2
    assert stats.points == 50
    assert level_ups == 1
    assert stats.credits == 160


def test_level_up_bonus_compares_against_previous_level(fresh_stats):
    stats = fresh_stats.model_copy(update={"experience": 90})
    result = apply_delta(stats, ScoreDelta(experience=20))

    assert result.old_level == 1
    assert result.new_level == 2
    assert result.bonus_credits == 10
    assert result.stats.credits == 110


def test_multi_level_jump_bonus_scales(fresh_stats):
    """Jumping three levels at once grants 3 x bonus"""
    result = apply_delta(fresh_stats, ScoreDelta(experience=350), level_up_bonus=10)

    assert result.new_level == 4
    assert result.levels_gained == 3
    assert result.bonus_credits == 30
    assert result.stats.credits == 130


def test_custom_level_up_bonus(fresh_stats):
    result = apply_delta(fresh_stats, ScoreDelta(experience=100), level_up_bonus=25)
    assert result.bonus_credits == 25


@pytest.mark.parametrize("experience", [0, 1, 99, 100, 101, 999, 12345])
def test_level_tracks_experience_after_apply(fresh_stats, experience):
    stats = apply_delta(fresh_stats, ScoreDelta(experience=experience)).stats
    assert stats.level == stats.experience // 100 + 1


def test_non_negative_delta_never_decreases_counters(fresh_stats):
    stats = fresh_stats.model_copy(update={"credits": 7, "experience": 42, "points": 3})
    for delta in [ScoreDelta(), ScoreDelta(credits=1), ScoreDelta(experience=58, points=2)]:
        updated = apply_delta(stats, delta).stats
        assert updated.credits >= stats.credits
        assert updated.experience >= stats.experience
        assert updated.points >= stats.points
        stats = updated


def test_negative_delta_rejected(fresh_stats):
    with pytest.raises(ValidationError) as exc_info:
        apply_delta(fresh_stats, ScoreDelta(experience=-10))
    assert exc_info.value.field == "experience"


# ============================================================================
# spend_credits Tests
# ============================================================================

def test_spend_credits_subtracts(fresh_stats):
    stats = spend_credits(fresh_stats, 30)
    assert stats.credits == 70
    assert stats.experience == fresh_stats.experience


def test_spend_entire_balance(fresh_stats):
    assert spend_credits(fresh_stats, 100).credits == 0


def test_overspend_raises_and_leaves_counters(fresh_stats):
    with pytest.raises(InsufficientCreditsError) as exc_info:
        spend_credits(fresh_stats, 101)

    assert exc_info.value.requested == 101
    assert exc_info.value.available == 100
    assert fresh_stats.credits == 100


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_spend_rejected(fresh_stats, amount):
    with pytest.raises(ValidationError):
        spend_credits(fresh_stats, amount)


def test_spend_on_empty_balance():
    stats = UserStats(user_id="broke", credits=0)
    with pytest.raises(InsufficientCreditsError):
        spend_credits(stats, 1)
