"""Catalog models: activities, questions and achievements"""
from enum import Enum
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional, Any

from edubot.models.event import QuestionCategory


class ActivityType(str, Enum):
    """Activity types"""
    QUIZ = "quiz"
    EVENT = "event"
    INTERACTION = "interaction"


class StudentLevel(str, Enum):
    """Education level a question targets"""
    UNIVERSITY = "university"
    HIGHSCHOOL = "highschool"


class Activity(BaseModel):
    """Activity definition. Points are trusted verbatim for scoring."""
    id: str
    title: str
    description: str = ""
    points: int = Field(..., ge=0)
    type: ActivityType
    is_active: bool = True
    location: Optional[str] = None


class Question(BaseModel):
    """Questionnaire question"""
    id: str
    text: str
    category: QuestionCategory
    level: StudentLevel
    points: int = Field(..., ge=0)


class Achievement(BaseModel):
    """Achievement definition"""
    id: str
    title: str
    description: str
    icon: str
    credits: int = Field(..., ge=0)
    criteria: dict[str, Any]


class UserAchievement(BaseModel):
    """User's unlocked achievement"""
    user_id: str
    achievement_id: str
    unlocked_at: datetime
