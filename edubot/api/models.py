"""Pydantic models for API request/response validation"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class CreateUserRequest(BaseModel):
    """Request to register a user"""
    user_id: str = Field(..., min_length=1, max_length=255, description="Authenticated user identifier")
    name: str = Field(default="", max_length=255, description="Display name for the leaderboard")


class UserStatsResponse(BaseModel):
    """Current gamification counters"""
    user_id: str
    name: str
    credits: int
    level: int
    experience: int
    points: int
    xp_to_next_level: int


class RecordEventRequest(BaseModel):
    """Request to record a scoring event"""
    kind: str = Field(..., description="question_answered, activity_completed or chat_message_sent")
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description="Kind-specific data: question_id/answer/category, activity_id, ..."
    )
    event_id: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Client-generated id; resending the same id is a no-op"
    )
    occurred_at: Optional[datetime] = Field(default=None, description="Event time (defaults to now)")


class ScoreDeltaResponse(BaseModel):
    credits: int
    experience: int
    points: int


class AchievementInfo(BaseModel):
    """Achievement with optional unlock time"""
    id: str
    title: str
    description: str
    icon: str
    credits: int
    unlocked_at: Optional[datetime] = None


class RecordEventResponse(BaseModel):
    """Result of recording an event"""
    user_id: str
    event_id: Optional[str]
    stats: UserStatsResponse
    delta: ScoreDeltaResponse
    leveled_up: bool
    old_level: int
    new_level: int
    bonus_credits: int
    achievements_unlocked: List[AchievementInfo] = Field(default_factory=list)
    duplicate: bool = False
    unknown_kind: bool = False


class SpendCreditsRequest(BaseModel):
    """Request to spend credits"""
    amount: int = Field(..., description="Credits to spend (must be positive)")
    reason: str = Field(default="", max_length=255)


class InsightResponse(BaseModel):
    """Derived behavioral insights"""
    user_id: str
    vocational_interests: List[str]
    reinforcement_areas: List[str]
    is_exhausted: bool
    emotional_variability: float


class AchievementListResponse(BaseModel):
    """Unlocked and locked achievements"""
    user_id: str
    unlocked: List[AchievementInfo]
    locked: List[AchievementInfo]
    total_unlocked: int
    total_achievements: int


class ChatAccessResponse(BaseModel):
    """Whether the user has enough credits to chat"""
    user_id: str
    can_use_chat: bool
    credits: int
    credits_required: int


class LeaderboardEntryResponse(BaseModel):
    position: int
    user_id: str
    name: str
    points: int
    level: int


class LeaderboardResponse(BaseModel):
    """Ranked users"""
    entries: List[LeaderboardEntryResponse]
    generated_at: datetime


class ActivityResponse(BaseModel):
    id: str
    title: str
    description: str
    points: int
    type: str
    is_active: bool
    location: Optional[str] = None


class ActivityListResponse(BaseModel):
    activities: List[ActivityResponse]


class QuestionResponse(BaseModel):
    id: str
    text: str
    category: str
    level: str
    points: int


class QuestionListResponse(BaseModel):
    questions: List[QuestionResponse]


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str
    database: str
    timestamp: datetime
