"""Unit tests for activity and question catalogs"""
import pytest

from edubot.gamification.catalog import (
    get_activities,
    get_activity,
    get_question,
    get_questions,
    get_questions_by_category,
    get_suggested_questions,
)
from edubot.models.catalog import StudentLevel
from edubot.models.event import QuestionCategory


def test_activity_lookup():
    assert get_activity("1").points == 50
    assert get_activity("2").location == "Auditorio Principal"
    assert get_activity("999") is None


def test_all_activities_active_by_default():
    assert len(get_activities()) == 3
    assert get_activities(active_only=True) == get_activities()


def test_questions_by_level():
    university = get_questions(StudentLevel.UNIVERSITY)
    highschool = get_questions("highschool")
    assert [q.id for q in university] == ["1", "2", "3", "4", "5"]
    assert [q.id for q in highschool] == ["6", "7", "8", "9", "10"]
    assert len(get_questions()) == 10


def test_unknown_level_raises():
    with pytest.raises(ValueError):
        get_questions("kindergarten")


def test_question_categories():
    assert get_question("3").category == QuestionCategory.EMOTIONAL
    assert get_question("8").category == QuestionCategory.EMOTIONAL
    assert get_question("nope") is None


def test_questions_by_category():
    emotional = get_questions_by_category("emotional")
    assert [q.id for q in emotional] == ["3", "8"]
    assert [q.id for q in get_questions_by_category(QuestionCategory.CAREER, "university")] == ["2"]


def test_suggestions_spread_categories():
    suggestions = get_suggested_questions("university", limit=5)
    assert len({q.category for q in suggestions}) == 5


def test_suggestions_skip_answered():
    suggestions = get_suggested_questions("highschool", answered_ids={"6", "7"}, limit=3)
    assert [q.id for q in suggestions] == ["8", "9", "10"]


def test_suggestions_when_everything_answered():
    answered = {q.id for q in get_questions("university")}
    assert get_suggested_questions("university", answered_ids=answered) == []
