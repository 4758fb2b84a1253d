"""API routes"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from edubot.api.models import (
    AchievementInfo,
    AchievementListResponse,
    ActivityListResponse,
    ActivityResponse,
    ChatAccessResponse,
    CreateUserRequest,
    HealthCheckResponse,
    InsightResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    QuestionListResponse,
    QuestionResponse,
    RecordEventRequest,
    RecordEventResponse,
    ScoreDeltaResponse,
    SpendCreditsRequest,
    UserStatsResponse,
)
from edubot.api.auth import verify_api_key
from edubot.api.middleware import limiter
from edubot.db.connection import db
from edubot.gamification import catalog
from edubot.gamification.scoring import calculate_level_from_xp
from edubot.models.catalog import Achievement, Question, StudentLevel
from edubot.models.event import QuestionCategory
from edubot.models.user import UserStats
from edubot.services.container import get_container
from edubot.services.gamification_service import GamificationService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_gamification_service() -> GamificationService:
    """FastAPI dependency resolving the service from the global container"""
    return get_container().gamification_service


def _stats_response(stats: UserStats) -> UserStatsResponse:
    level_info = calculate_level_from_xp(stats.experience)
    return UserStatsResponse(
        user_id=stats.user_id,
        name=stats.name,
        credits=stats.credits,
        level=stats.level,
        experience=stats.experience,
        points=stats.points,
        xp_to_next_level=level_info["xp_to_next_level"],
    )


def _achievement_info(achievement: Achievement, unlocked_at: Optional[datetime] = None) -> AchievementInfo:
    return AchievementInfo(
        id=achievement.id,
        title=achievement.title,
        description=achievement.description,
        icon=achievement.icon,
        credits=achievement.credits,
        unlocked_at=unlocked_at,
    )


def _question_response(question: Question) -> QuestionResponse:
    return QuestionResponse(
        id=question.id,
        text=question.text,
        category=question.category.value,
        level=question.level.value,
        points=question.points,
    )


# ==========================================
# Users
# ==========================================

@router.post("/api/v1/users", response_model=UserStatsResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_user_endpoint(
    request: Request,
    body: CreateUserRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Register a user with starting credits (Rate limit: 20/minute)"""
    stats = await service.register_user(body.user_id, body.name)
    return _stats_response(stats)


@router.get("/api/v1/users/{user_id}/stats", response_model=UserStatsResponse)
@limiter.limit("60/minute")
async def get_stats(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Get credits, level, experience and points (Rate limit: 60/minute)"""
    stats = await service.get_user_stats(user_id)
    return _stats_response(stats)


# ==========================================
# Events & credits
# ==========================================

@router.post("/api/v1/users/{user_id}/events", response_model=RecordEventResponse)
@limiter.limit("60/minute")
async def record_event_endpoint(
    request: Request,
    user_id: str,
    body: RecordEventRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """
    Record a scoring event and return the updated counters

    Unknown kinds are accepted and reported with unknown_kind=true and a zero
    delta. Resending an event_id returns duplicate=true without scoring again.
    """
    result = await service.record_event(
        user_id,
        body.kind,
        body.payload,
        event_id=body.event_id,
        occurred_at=body.occurred_at,
    )

    return RecordEventResponse(
        user_id=user_id,
        event_id=result.event.id if result.event else None,
        stats=_stats_response(result.stats),
        delta=ScoreDeltaResponse(**result.delta.to_dict()),
        leveled_up=result.leveled_up,
        old_level=result.old_level,
        new_level=result.new_level,
        bonus_credits=result.bonus_credits,
        achievements_unlocked=[_achievement_info(a) for a in result.achievements_unlocked],
        duplicate=result.duplicate,
        unknown_kind=result.unknown_kind,
    )


@router.post("/api/v1/users/{user_id}/credits/spend", response_model=UserStatsResponse)
@limiter.limit("30/minute")
async def spend_credits_endpoint(
    request: Request,
    user_id: str,
    body: SpendCreditsRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Spend credits; 402 when the balance is too low (Rate limit: 30/minute)"""
    stats = await service.spend_credits(user_id, body.amount, body.reason)
    return _stats_response(stats)


@router.get("/api/v1/users/{user_id}/chat-access", response_model=ChatAccessResponse)
@limiter.limit("60/minute")
async def chat_access(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Whether the user holds enough credits to use the chat"""
    stats = await service.get_user_stats(user_id)
    return ChatAccessResponse(
        user_id=user_id,
        can_use_chat=service.has_chat_credits(stats),
        credits=stats.credits,
        credits_required=service.chat_credits_required,
    )


# ==========================================
# Insights & achievements
# ==========================================

@router.get("/api/v1/users/{user_id}/insights", response_model=InsightResponse)
@limiter.limit("30/minute")
async def get_insights_endpoint(
    request: Request,
    user_id: str,
    window_days: Optional[int] = Query(default=None, ge=1, le=365),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Derive insights from the user's answers (Rate limit: 30/minute)"""
    snapshot = await service.get_insights(user_id, window_days)
    return InsightResponse(
        user_id=user_id,
        vocational_interests=sorted(snapshot.vocational_interests),
        reinforcement_areas=sorted(snapshot.reinforcement_areas),
        is_exhausted=snapshot.is_exhausted,
        emotional_variability=snapshot.emotional_variability,
    )


@router.get("/api/v1/users/{user_id}/achievements", response_model=AchievementListResponse)
@limiter.limit("30/minute")
async def get_achievements_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Get unlocked and locked achievements (Rate limit: 30/minute)"""
    data = await service.get_achievements(user_id)
    return AchievementListResponse(
        user_id=user_id,
        unlocked=[_achievement_info(u["achievement"], u["unlocked_at"]) for u in data["unlocked"]],
        locked=[_achievement_info(a) for a in data["locked"]],
        total_unlocked=data["total_unlocked"],
        total_achievements=data["total_achievements"],
    )


@router.get("/api/v1/users/{user_id}/questions/suggested", response_model=QuestionListResponse)
@limiter.limit("30/minute")
async def suggested_questions(
    request: Request,
    user_id: str,
    level: StudentLevel = Query(default=StudentLevel.UNIVERSITY),
    limit: int = Query(default=3, ge=1, le=10),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Unanswered questions, spread across categories"""
    answered = await service.get_answered_question_ids(user_id)
    questions = catalog.get_suggested_questions(level, answered, limit)
    return QuestionListResponse(questions=[_question_response(q) for q in questions])


# ==========================================
# Leaderboard & catalogs
# ==========================================

@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("30/minute")
async def get_leaderboard_endpoint(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service),
):
    """Top users by points (Rate limit: 30/minute)"""
    entries = await service.get_leaderboard(limit)
    return LeaderboardResponse(
        entries=[LeaderboardEntryResponse(**entry.model_dump()) for entry in entries],
        generated_at=datetime.now(timezone.utc),
    )


@router.get("/api/v1/activities", response_model=ActivityListResponse)
@limiter.limit("60/minute")
async def list_activities(
    request: Request,
    active_only: bool = Query(default=False),
    api_key: str = Depends(verify_api_key),
):
    """Activity catalog"""
    return ActivityListResponse(activities=[
        ActivityResponse(**a.model_dump(mode="json"))
        for a in catalog.get_activities(active_only)
    ])


@router.get("/api/v1/questions", response_model=QuestionListResponse)
@limiter.limit("60/minute")
async def list_questions(
    request: Request,
    level: Optional[StudentLevel] = Query(default=None),
    category: Optional[QuestionCategory] = Query(default=None),
    api_key: str = Depends(verify_api_key),
):
    """Question catalog, optionally filtered by level and category"""
    if category is not None:
        questions = catalog.get_questions_by_category(category, level)
    else:
        questions = catalog.get_questions(level)
    return QuestionListResponse(questions=[_question_response(q) for q in questions])


# ==========================================
# Operations
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    if not db.is_initialized:
        db_status = "not_configured"
    elif await db.ping():
        db_status = "connected"
    else:
        db_status = "disconnected"

    return HealthCheckResponse(
        status="degraded" if db_status == "disconnected" else "healthy",
        database=db_status,
        timestamp=datetime.now(timezone.utc)
    )


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Exposes all application metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
