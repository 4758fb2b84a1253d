"""
GamificationService - Gamification State Manager

Owns the authoritative per-user counters. Every counter change goes through
record_event() or spend_credits(); achievement rewards are applied inside
the same locked section as the event that earned them.
"""

import asyncio
import logging
import random
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from edubot import config
from edubot.exceptions import RecordNotFoundError, UserAlreadyExistsError, UserNotFoundError, ValidationError
from edubot.gamification import catalog
from edubot.gamification.achievements import ACHIEVEMENTS, check_achievements
from edubot.gamification.insights import build_insight_snapshot
from edubot.gamification.leaderboard import build_leaderboard
from edubot.gamification.progression import apply_delta, spend_credits
from edubot.gamification.scoring import ScoreDelta, score_event
from edubot.models.catalog import Achievement, Activity, Question
from edubot.models.event import Event, EventKind, QuestionCategory, is_identifier
from edubot.models.insight import InsightSnapshot
from edubot.models.leaderboard import LeaderboardEntry
from edubot.models.user import UserStats
from edubot.observability import metrics
from edubot.repository import GamificationRepository

logger = logging.getLogger(__name__)

VariabilityEstimator = Callable[[str], float]


def simulated_variability(answer: str) -> float:
    """Random 0-10 score for emotional answers that arrive without one"""
    return round(random.uniform(0.0, 10.0), 2)


@dataclass
class RecordEventResult:
    """Outcome of record_event"""
    stats: UserStats
    delta: ScoreDelta
    event: Optional[Event] = None
    old_level: int = 1
    new_level: int = 1
    bonus_credits: int = 0
    achievements_unlocked: List[Achievement] = field(default_factory=list)
    duplicate: bool = False
    unknown_kind: bool = False

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


class GamificationService:
    """
    Service for gamification state.

    Responsibilities:
    - User registration with starting credits
    - Event validation, logging and scoring
    - Level-up bonuses and achievement rewards
    - Credit spending and the chat access gate
    - Insight snapshots and the leaderboard

    Counter mutations for one user are serialized by a per-user asyncio.Lock.
    The event append, achievement unlocks and counter write of one event
    share a repository transaction, so a failed write leaves no partial
    state and a retry of the same event id is scored normally. Once
    applied, retries of the same event are a no-op.
    """

    def __init__(
        self,
        repository: GamificationRepository,
        starting_credits: int = config.STARTING_CREDITS,
        level_up_bonus: int = config.LEVEL_UP_BONUS_CREDITS,
        chat_credits_required: int = config.CHAT_CREDITS_REQUIRED,
        leaderboard_limit: int = config.LEADERBOARD_DEFAULT_LIMIT,
        exhaustion_threshold: float = config.EXHAUSTION_THRESHOLD,
        variability_estimator: VariabilityEstimator = simulated_variability,
        activity_lookup: Callable[[str], Optional[Activity]] = catalog.get_activity,
        question_lookup: Callable[[str], Optional[Question]] = catalog.get_question,
    ):
        self.repository = repository
        self.starting_credits = starting_credits
        self.level_up_bonus = level_up_bonus
        self.chat_credits_required = chat_credits_required
        self.leaderboard_limit = leaderboard_limit
        self.exhaustion_threshold = exhaustion_threshold
        self.variability_estimator = variability_estimator
        self.activity_lookup = activity_lookup
        self.question_lookup = question_lookup
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        logger.debug("GamificationService initialized")

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _require_user(self, user_id: str) -> UserStats:
        stats = await self.repository.get_user(user_id)
        if stats is None:
            raise UserNotFoundError(user_id)
        return stats

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def register_user(self, user_id: str, name: str = "") -> UserStats:
        """
        Create a user with starting credits

        Raises:
            UserAlreadyExistsError: If the id is already registered
        """
        stats = await self.repository.create_user(user_id, name, self.starting_credits)
        if stats is None:
            raise UserAlreadyExistsError(
                message=f"User {user_id} already exists",
                user_id=user_id,
                operation="register_user",
            )
        logger.info(f"Registered user {user_id} with {self.starting_credits} credits")
        return stats

    async def get_user_stats(self, user_id: str) -> UserStats:
        return await self._require_user(user_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _build_event(
        self,
        user_id: str,
        kind: EventKind,
        payload: Dict[str, Any],
        event_id: Optional[str],
        occurred_at: Optional[datetime],
    ) -> Event:
        """Resolve catalog data and validate into an immutable Event"""
        payload = dict(payload)
        emotional_variability = payload.pop("emotional_variability", None)

        if kind == EventKind.QUESTION_ANSWERED:
            question_id = payload.get("question_id")
            question = self.question_lookup(str(question_id)) if is_identifier(question_id) else None
            if question is not None and not payload.get("category"):
                payload["category"] = question.category.value
            if payload.get("category") == QuestionCategory.EMOTIONAL.value:
                if emotional_variability is None:
                    emotional_variability = self.variability_estimator(payload.get("answer", ""))
            else:
                emotional_variability = None

        elif kind == EventKind.ACTIVITY_COMPLETED:
            activity_id = payload.get("activity_id")
            if is_identifier(activity_id):
                activity = self.activity_lookup(str(activity_id))
                if activity is None:
                    raise RecordNotFoundError(
                        message=f"Activity {activity_id} not found",
                        record_type="Activity",
                        record_id=str(activity_id),
                        user_id=user_id,
                        operation="record_event",
                    )
                if not activity.is_active:
                    raise ValidationError(
                        f"Activity {activity_id} is not active",
                        field="activity_id",
                        value=activity_id,
                        user_id=user_id,
                        operation="record_event",
                    )
                payload["points"] = activity.points

        if occurred_at is not None and occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)

        fields: Dict[str, Any] = {
            "user_id": user_id,
            "kind": kind,
            "payload": payload,
            "emotional_variability": emotional_variability,
        }
        if event_id:
            fields["id"] = event_id
        if occurred_at is not None:
            fields["occurred_at"] = occurred_at

        try:
            return Event(**fields)
        except PydanticValidationError as e:
            first = e.errors()[0]
            raise ValidationError(
                f"Malformed {kind.value} event: {first['msg']}",
                field=".".join(str(part) for part in first["loc"]) or "payload",
                user_id=user_id,
                operation="record_event",
            )

    async def record_event(
        self,
        user_id: str,
        kind: Union[EventKind, str],
        payload: Optional[Dict[str, Any]] = None,
        event_id: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ) -> RecordEventResult:
        """
        Validate, log and score one event

        Args:
            user_id: Authenticated user identifier
            kind: question_answered, activity_completed or chat_message_sent
            payload: Kind-specific data (see edubot.models.event)
            event_id: Caller-supplied id for deduplication (generated if None)
            occurred_at: Event time (now if None; naive values are taken as UTC)

        Returns:
            RecordEventResult with the updated counters. Unknown kinds and
            duplicate event ids return the current counters unchanged.

        Raises:
            UserNotFoundError: No such user (nothing is mutated)
            ValidationError: Malformed event
            RecordNotFoundError: Unknown activity
        """
        try:
            event_kind = EventKind(kind)
        except ValueError:
            stats = await self._require_user(user_id)
            logger.warning(f"Ignoring event of unknown kind '{kind}' for user {user_id}")
            metrics.gamification_events_total.labels(kind="unknown", status="unknown_kind").inc()
            return RecordEventResult(
                stats=stats,
                delta=ScoreDelta.unknown(),
                old_level=stats.level,
                new_level=stats.level,
                unknown_kind=True,
            )

        event = self._build_event(user_id, event_kind, payload or {}, event_id, occurred_at)

        async with self._lock_for(user_id):
            stats = await self._require_user(user_id)

            async with self.repository.transaction():
                if not await self.repository.append_event(event):
                    logger.info(f"Duplicate event {event.id} for user {user_id}, skipping")
                    metrics.gamification_events_total.labels(kind=event_kind.value, status="duplicate").inc()
                    return RecordEventResult(
                        stats=stats,
                        delta=ScoreDelta(),
                        event=event,
                        old_level=stats.level,
                        new_level=stats.level,
                        duplicate=True,
                    )

                delta = score_event(event_kind, base_amount=event.payload.get("points", 0))
                progression = apply_delta(stats, delta, self.level_up_bonus)
                stats = progression.stats

                unlocked = await self._unlock_achievements(user_id)
                for achievement in unlocked:
                    stats = apply_delta(stats, ScoreDelta(credits=achievement.credits), self.level_up_bonus).stats

                await self.repository.save_user(stats)

        metrics.gamification_events_total.labels(kind=event_kind.value, status="applied").inc()
        metrics.credits_awarded_total.labels(source="event").inc(delta.credits)
        if progression.leveled_up:
            metrics.level_ups_total.inc(progression.levels_gained)
            metrics.credits_awarded_total.labels(source="level_up").inc(progression.bonus_credits)
        for achievement in unlocked:
            metrics.achievements_unlocked_total.labels(achievement_id=achievement.id).inc()
            metrics.credits_awarded_total.labels(source="achievement").inc(achievement.credits)
            logger.info(
                f"User {user_id} unlocked achievement {achievement.id} "
                f"({achievement.title}) +{achievement.credits} credits"
            )

        logger.info(
            f"Recorded {event_kind.value} for user {user_id}: +{delta.credits} credits, "
            f"+{delta.experience} XP, +{delta.points} points. "
            f"Level {stats.level}, credits {stats.credits}"
        )

        return RecordEventResult(
            stats=stats,
            delta=delta,
            event=event,
            old_level=progression.old_level,
            new_level=progression.new_level,
            bonus_credits=progression.bonus_credits,
            achievements_unlocked=unlocked,
        )

    async def _unlock_achievements(self, user_id: str) -> List[Achievement]:
        """Persist newly satisfied achievements; caller holds the user lock and the transaction"""
        events = await self.repository.list_events(user_id)
        already = {a.achievement_id for a in await self.repository.get_unlocked_achievements(user_id)}

        unlocked = []
        for achievement in check_achievements(events, already):
            if await self.repository.add_unlocked_achievement(user_id, achievement.id):
                unlocked.append(achievement)
        return unlocked

    # ------------------------------------------------------------------
    # Credits
    # ------------------------------------------------------------------

    async def spend_credits(self, user_id: str, amount: int, reason: str = "") -> UserStats:
        """
        Spend credits

        Raises:
            UserNotFoundError: No such user
            ValidationError: Non-positive amount
            InsufficientCreditsError: Amount exceeds balance (counters unchanged)
        """
        async with self._lock_for(user_id):
            stats = await self._require_user(user_id)
            updated = spend_credits(stats, amount)
            await self.repository.save_user(updated)

        metrics.credits_spent_total.inc(amount)
        logger.info(f"User {user_id} spent {amount} credits ({reason or 'no reason given'}), {updated.credits} left")
        return updated

    def has_chat_credits(self, stats: UserStats) -> bool:
        """Chat unlocks once the balance reaches the required minimum"""
        return stats.credits >= self.chat_credits_required

    async def can_use_chat(self, user_id: str) -> bool:
        return self.has_chat_credits(await self._require_user(user_id))

    # ------------------------------------------------------------------
    # Insights, achievements, leaderboard
    # ------------------------------------------------------------------

    async def get_insights(self, user_id: str, window_days: Optional[int] = None) -> InsightSnapshot:
        """
        Derive an insight snapshot from the user's event history

        Args:
            window_days: Only consider the last N days (full history if None)
        """
        await self._require_user(user_id)

        since = None
        if window_days is not None:
            if window_days <= 0:
                raise ValidationError(
                    "window_days must be positive",
                    field="window_days",
                    value=window_days,
                    user_id=user_id,
                    operation="get_insights",
                )
            since = datetime.now(timezone.utc) - timedelta(days=window_days)

        events = await self.repository.list_events(user_id, since)
        metrics.insight_requests_total.inc()
        return build_insight_snapshot(events, self.exhaustion_threshold)

    async def get_answered_question_ids(self, user_id: str) -> set[str]:
        await self._require_user(user_id)
        events = await self.repository.list_events(user_id)
        return {
            str(e.payload["question_id"])
            for e in events
            if e.kind == EventKind.QUESTION_ANSWERED
        }

    async def get_achievements(self, user_id: str) -> Dict[str, Any]:
        """
        Returns:
            {
                'unlocked': [{'achievement': Achievement, 'unlocked_at': datetime}],
                'locked': [Achievement],
                'total_unlocked': int,
                'total_achievements': int
            }
        """
        await self._require_user(user_id)
        user_achievements = await self.repository.get_unlocked_achievements(user_id)
        unlocked_at = {a.achievement_id: a.unlocked_at for a in user_achievements}

        unlocked = [
            {"achievement": a, "unlocked_at": unlocked_at[a.id]}
            for a in ACHIEVEMENTS if a.id in unlocked_at
        ]
        locked = [a for a in ACHIEVEMENTS if a.id not in unlocked_at]

        return {
            "unlocked": unlocked,
            "locked": locked,
            "total_unlocked": len(unlocked),
            "total_achievements": len(ACHIEVEMENTS),
        }

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        """Top users by points; default limit from configuration"""
        limit = self.leaderboard_limit if limit is None else limit
        if limit < 1:
            raise ValidationError(
                "limit must be at least 1",
                field="limit",
                value=limit,
                operation="get_leaderboard",
            )
        users = await self.repository.list_users()
        return build_leaderboard(users, limit)
