"""
Event models for the append-only event log

Every scoring-relevant user action becomes an immutable Event. Payload shape
depends on the kind:

- question_answered: question_id, answer, category (resolved from the question
  catalog when the caller omits it)
- activity_completed: activity_id, points (copied from the activity catalog)
- chat_message_sent: free-form (message_id, etc.)

Malformed events are rejected here so insight derivation never has to guess.
"""
from enum import Enum
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventKind(str, Enum):
    """Kinds of events that move gamification counters"""
    QUESTION_ANSWERED = "question_answered"
    ACTIVITY_COMPLETED = "activity_completed"
    CHAT_MESSAGE_SENT = "chat_message_sent"


class QuestionCategory(str, Enum):
    """Question categories used by the insight engine"""
    ACADEMIC = "academic"
    CAREER = "career"
    EMOTIONAL = "emotional"
    VOCATIONAL = "vocational"
    REINFORCEMENT = "reinforcement"


VALID_EVENT_KINDS = {kind.value for kind in EventKind}

MIN_EMOTIONAL_VARIABILITY = 0.0
MAX_EMOTIONAL_VARIABILITY = 10.0


def is_identifier(value: Any) -> bool:
    """Catalog ids are non-empty strings or integers"""
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and bool(value))


class Event(BaseModel):
    """Immutable record of a user action"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str = Field(..., min_length=1)
    kind: EventKind
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    emotional_variability: Optional[float] = Field(
        default=None,
        ge=MIN_EMOTIONAL_VARIABILITY,
        le=MAX_EMOTIONAL_VARIABILITY,
        description="0-10 scalar attached to emotional question answers",
    )

    @model_validator(mode='after')
    def check_payload(self) -> 'Event':
        """Required payload fields per kind"""
        if self.kind == EventKind.QUESTION_ANSWERED:
            if not is_identifier(self.payload.get("question_id")):
                raise ValueError("question_answered events require payload.question_id")
            if not isinstance(self.payload.get("answer"), str):
                raise ValueError("question_answered events require a text payload.answer")
            category = self.payload.get("category")
            if category is not None:
                if not isinstance(category, str):
                    raise ValueError("question_answered payload.category must be a string")
                if category not in {c.value for c in QuestionCategory}:
                    raise ValueError(f"Unknown question category '{category}'")
            if category == QuestionCategory.EMOTIONAL.value and self.emotional_variability is None:
                raise ValueError("emotional question events require emotional_variability")
        elif self.kind == EventKind.ACTIVITY_COMPLETED:
            if not is_identifier(self.payload.get("activity_id")):
                raise ValueError("activity_completed events require payload.activity_id")
            points = self.payload.get("points", 0)
            if not isinstance(points, int) or points < 0:
                raise ValueError("activity_completed payload.points must be a non-negative integer")

        if self.emotional_variability is not None and self.category != QuestionCategory.EMOTIONAL.value:
            raise ValueError("emotional_variability is only valid on emotional question events")
        return self

    @property
    def category(self) -> Optional[str]:
        """Question category, None for non-question events"""
        if self.kind != EventKind.QUESTION_ANSWERED:
            return None
        return self.payload.get("category")

    @property
    def answer(self) -> str:
        """Free-text answer, empty for non-question events"""
        if self.kind != EventKind.QUESTION_ANSWERED:
            return ""
        return self.payload.get("answer", "")
