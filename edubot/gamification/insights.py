"""
Insight Engine

Derives coarse behavioral signals from a user's question-response history:

- Vocational interest: any vocational-category answer, or an answer that
  mentions a career keyword, yields the full canonical interest set
- Reinforcement areas: same presence test keyed on reinforcement answers or
  the difficulty keyword
- Emotional variability: mean of the 0-10 scalar attached to emotional answers
- Exhaustion: that mean falling below a threshold (3.0 by default)

These are presence heuristics, not text classification: two different
vocational answers produce the same interest set.

All functions are pure and total over well-formed events; empty input means
no signal (empty set / 0.0 / False).
"""

from typing import Iterable, List, Optional, Set
import logging

from edubot.models.event import Event, EventKind, QuestionCategory
from edubot.models.insight import InsightSnapshot

logger = logging.getLogger(__name__)

CAREER_KEYWORDS = ("carrera",)
DIFFICULTY_KEYWORDS = ("dificultad",)

CANONICAL_VOCATIONAL_INTERESTS = frozenset({"Tecnología", "Ciencias", "Humanidades", "Artes"})
CANONICAL_REINFORCEMENT_AREAS = frozenset({"Matemáticas", "Ciencias", "Lenguaje", "Historia"})

DEFAULT_EXHAUSTION_THRESHOLD = 3.0


def _question_events(events: Iterable[Event]) -> List[Event]:
    return [e for e in events if e.kind == EventKind.QUESTION_ANSWERED]


def _matches(event: Event, category: QuestionCategory, keywords: Iterable[str]) -> bool:
    if event.category == category.value:
        return True
    answer = event.answer.lower()
    return any(keyword in answer for keyword in keywords)


def _emotional_mean(events: Iterable[Event]) -> Optional[float]:
    scores = [
        e.emotional_variability
        for e in _question_events(events)
        if e.category == QuestionCategory.EMOTIONAL.value and e.emotional_variability is not None
    ]
    if not scores:
        return None
    return sum(scores) / len(scores)


def detect_vocational_interests(events: Iterable[Event]) -> Set[str]:
    """Canonical interest set if any vocational signal is present, else empty"""
    if any(_matches(e, QuestionCategory.VOCATIONAL, CAREER_KEYWORDS) for e in _question_events(events)):
        return set(CANONICAL_VOCATIONAL_INTERESTS)
    return set()


def detect_reinforcement_areas(events: Iterable[Event]) -> Set[str]:
    """Canonical area set if any reinforcement signal is present, else empty"""
    if any(_matches(e, QuestionCategory.REINFORCEMENT, DIFFICULTY_KEYWORDS) for e in _question_events(events)):
        return set(CANONICAL_REINFORCEMENT_AREAS)
    return set()


def calculate_emotional_variability(events: Iterable[Event]) -> float:
    """Mean variability over emotional answers; 0.0 without any"""
    mean = _emotional_mean(events)
    return 0.0 if mean is None else mean


def detect_exhaustion(
    events: Iterable[Event],
    threshold: float = DEFAULT_EXHAUSTION_THRESHOLD,
) -> bool:
    """True when mean emotional variability is below threshold; False without evidence"""
    mean = _emotional_mean(events)
    if mean is None:
        return False
    return mean < threshold


def build_insight_snapshot(
    events: Iterable[Event],
    exhaustion_threshold: float = DEFAULT_EXHAUSTION_THRESHOLD,
) -> InsightSnapshot:
    """Run every detector over the same event list"""
    events = list(events)
    snapshot = InsightSnapshot(
        vocational_interests=detect_vocational_interests(events),
        reinforcement_areas=detect_reinforcement_areas(events),
        is_exhausted=detect_exhaustion(events, exhaustion_threshold),
        emotional_variability=calculate_emotional_variability(events),
    )
    logger.debug(
        f"Derived insights from {len(events)} events: exhausted={snapshot.is_exhausted}, "
        f"variability={snapshot.emotional_variability:.2f}"
    )
    return snapshot
