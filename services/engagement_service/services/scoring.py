"""
Client Engagement Scoring

Scores each of a coach's active clients from 0 to 100 using five behavioural
signals, each read from its own time window:

    Signal                   Window   Weight
    session attendance       30 days  0.25
    habit completion          7 days  0.25
    message responsiveness   14 days  0.15
    progress logging         14 days  0.20
    plan adherence            7 days  0.15

Sub-scores are rounded to integers as they are computed and the weighted sum
is taken over the rounded values. A signal with no data scores a neutral 50,
except progress logging, which scores 0.

The latest score for each (client, coach) is upserted; the stored value is
the baseline for the next computation's week-over-week change.
"""

import asyncio
import math
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Iterable, Optional, Sequence, TypeVar

from libs.common.datetime_utils import ensure_aware, utc_now
from libs.common.logging import get_logger
from services.engagement_service.models import (
    ClientEngagementScore,
    ClientHabit,
    ClientProfile,
    ClientProgress,
    CoachClient,
    CoachClientStatus,
    CoachingSession,
    CoachingSessionStatus,
    CoachProfile,
    HabitLog,
    Message,
    TrainingLog,
)
from services.engagement_service.schemas import (
    ClientEngagementData,
    EngagementScoreBreakdown,
    EngagementTier,
    Trend,
)
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

T = TypeVar("T")

# ============================================================================
# CONSTANTS
# ============================================================================

SCORE_WEIGHTS: dict[str, float] = {
    "session_attendance": 0.25,
    "habit_completion": 0.25,
    "message_responsiveness": 0.15,
    "progress_logging": 0.20,
    "plan_adherence": 0.15,
}

NEUTRAL_SCORE = 50

SESSION_WINDOW = timedelta(days=30)
HABIT_WINDOW = timedelta(days=7)
MESSAGE_WINDOW = timedelta(days=14)
PROGRESS_WINDOW = timedelta(days=14)
TRAINING_WINDOW = timedelta(days=7)

# One progress entry a week, three workouts a week
EXPECTED_PROGRESS_ENTRIES = 2
EXPECTED_WORKOUTS = 3

# (upper bound in hours, score); anything slower scores SLOWEST_RESPONSE_SCORE
RESPONSE_TIME_BANDS: list[tuple[float, int]] = [
    (2, 100),
    (6, 80),
    (12, 60),
    (24, 40),
    (48, 20),
]
SLOWEST_RESPONSE_SCORE = 10

TREND_THRESHOLD = 5

# (minimum score, tier), highest first
ENGAGEMENT_TIERS: list[tuple[int, EngagementTier]] = [
    (80, "highly_engaged"),
    (60, "engaged"),
    (40, "at_risk"),
    (0, "disengaged"),
]


# ============================================================================
# SCORING FUNCTIONS
# ============================================================================


def round_half_up(value: float) -> int:
    """Round .5 upwards, unlike Python's round-half-to-even."""
    return int(math.floor(value + 0.5))


def _ratio_score(numerator: float, denominator: float) -> int:
    return min(100, round_half_up(numerator / denominator * 100))


def session_attendance_score(statuses: Sequence[CoachingSessionStatus]) -> int:
    """Share of scheduled sessions that were completed."""
    if not statuses:
        return NEUTRAL_SCORE
    attended = sum(1 for s in statuses if s == CoachingSessionStatus.COMPLETED)
    return round_half_up(attended / len(statuses) * 100)


def habit_completion_score(
    logs: Iterable[tuple[Optional[int], Optional[int]]],
) -> int:
    """Completed vs. target habit count over ``(completed, target)`` pairs.

    A missing target counts as 1; a missing completed count as 0.
    """
    logs = list(logs)
    if not logs:
        return NEUTRAL_SCORE
    completed = sum(c or 0 for c, _ in logs)
    target = sum(t or 1 for _, t in logs)
    if target <= 0:
        return NEUTRAL_SCORE
    return _ratio_score(completed, target)


def response_time_score(average_hours: float) -> int:
    for upper_bound, score in RESPONSE_TIME_BANDS:
        if average_hours < upper_bound:
            return score
    return SLOWEST_RESPONSE_SCORE


def reply_latencies_hours(
    messages: Sequence[tuple[datetime, uuid.UUID]], client_id: uuid.UUID
) -> list[int]:
    """Whole hours between each client reply and the message it answers.

    ``messages`` are ``(created_at, sender_id)`` in chronological order. A
    reply is a client message directly after a message from someone else.
    """
    latencies = []
    for previous, current in zip(messages, messages[1:]):
        prev_at, prev_sender = previous
        cur_at, cur_sender = current
        if cur_sender == client_id and prev_sender != client_id:
            delta = ensure_aware(cur_at) - ensure_aware(prev_at)
            latencies.append(math.trunc(delta.total_seconds() / 3600))
    return latencies


def message_responsiveness_score(
    messages: Sequence[tuple[datetime, uuid.UUID]], client_id: uuid.UUID
) -> int:
    if len(messages) < 2:
        return NEUTRAL_SCORE
    latencies = reply_latencies_hours(messages, client_id)
    if not latencies:
        return NEUTRAL_SCORE
    return response_time_score(sum(latencies) / len(latencies))


def progress_logging_score(entry_count: int) -> int:
    return _ratio_score(entry_count or 0, EXPECTED_PROGRESS_ENTRIES)


def plan_adherence_score(workout_count: int) -> int:
    # No logs and poor compliance are not told apart
    if not workout_count:
        return NEUTRAL_SCORE
    return _ratio_score(workout_count, EXPECTED_WORKOUTS)


def overall_score(breakdown: EngagementScoreBreakdown) -> int:
    """Weighted composite of the already-rounded sub-scores."""
    values = breakdown.model_dump()
    return round_half_up(
        sum(values[name] * weight for name, weight in SCORE_WEIGHTS.items())
    )


def trend_for(change: int) -> Trend:
    if change > TREND_THRESHOLD:
        return "up"
    if change < -TREND_THRESHOLD:
        return "down"
    return "stable"


def engagement_tier(score: int) -> EngagementTier:
    for minimum, tier in ENGAGEMENT_TIERS:
        if score >= minimum:
            return tier
    return "disengaged"


# ============================================================================
# ENGINE
# ============================================================================


class EngagementScoringEngine:
    """Computes and stores engagement scores for a coach's roster.

    Every read runs in its own session so clients, and the five signals of
    each client, can be fetched concurrently. ``max_concurrency`` caps the
    number of sessions open at once.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        client_timeout: Optional[float] = None,
        max_concurrency: int = 10,
        now: Callable[[], datetime] = utc_now,
    ):
        self.session_factory = session_factory
        self.client_timeout = client_timeout
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._now = now

    async def compute_engagement(
        self, coach_user_id: str, client_id: Optional[uuid.UUID] = None
    ) -> list[ClientEngagementData]:
        """Score the coach's active clients, lowest score first.

        Clients whose scoring fails or times out are left out of the result.
        """
        async with self.session_factory() as db:
            coach_id = await db.scalar(
                select(CoachProfile.id).where(CoachProfile.user_id == coach_user_id)
            )
            if coach_id is None:
                return []

            query = (
                select(CoachClient)
                .where(
                    CoachClient.coach_id == coach_id,
                    CoachClient.status == CoachClientStatus.ACTIVE,
                )
                .options(selectinload(CoachClient.client))
            )
            if client_id is not None:
                query = query.where(CoachClient.client_id == client_id)
            relationships = (await db.execute(query)).scalars().all()

        profiles = [rel.client for rel in relationships if rel.client is not None]
        if not profiles:
            return []

        now = self._now()
        results = await asyncio.gather(
            *(self._score_client_safely(coach_id, profile, now) for profile in profiles)
        )
        scored = [r for r in results if r is not None]
        scored.sort(key=lambda r: r.overall_score)

        logger.info(
            "Scored %d of %d clients for coach %s",
            len(scored),
            len(profiles),
            coach_id,
        )
        return scored

    async def _score_client_safely(
        self, coach_id: uuid.UUID, profile: ClientProfile, now: datetime
    ) -> Optional[ClientEngagementData]:
        try:
            if self.client_timeout:
                return await asyncio.wait_for(
                    self.score_client(coach_id, profile, now),
                    timeout=self.client_timeout,
                )
            return await self.score_client(coach_id, profile, now)
        except asyncio.TimeoutError:
            logger.warning(
                "Engagement scoring for client %s timed out after %ss",
                profile.id,
                self.client_timeout,
            )
        except Exception:
            logger.warning(
                "Engagement scoring failed for client %s", profile.id, exc_info=True
            )
        return None

    async def score_client(
        self, coach_id: uuid.UUID, profile: ClientProfile, now: datetime
    ) -> ClientEngagementData:
        """Compute, store and return one client's engagement score."""
        client_id = profile.id
        (
            attendance,
            habits,
            responsiveness,
            progress,
            adherence,
        ) = await asyncio.gather(
            self._read(self._session_attendance, client_id, coach_id, now),
            self._read(self._habit_completion, client_id, now),
            self._read(self._message_responsiveness, client_id, now),
            self._read(self._progress_logging, client_id, now),
            self._read(self._plan_adherence, client_id, now),
        )
        breakdown = EngagementScoreBreakdown(
            session_attendance=attendance,
            habit_completion=habits,
            message_responsiveness=responsiveness,
            progress_logging=progress,
            plan_adherence=adherence,
        )
        score = overall_score(breakdown)

        async with self._semaphore:
            async with self.session_factory() as db:
                previous = await db.scalar(
                    select(ClientEngagementScore.overall_score).where(
                        ClientEngagementScore.client_id == client_id,
                        ClientEngagementScore.coach_id == coach_id,
                    )
                )
                change = score - previous if previous is not None else 0
                await upsert_engagement_score(
                    db,
                    client_id=client_id,
                    coach_id=coach_id,
                    overall=score,
                    breakdown=breakdown,
                    week_over_week_change=change,
                    updated_at=now,
                )
                await db.commit()

        return ClientEngagementData(
            client_id=client_id,
            client_name=profile.display_name,
            avatar_url=profile.avatar_url,
            overall_score=score,
            breakdown=breakdown,
            week_over_week_change=change,
            trend=trend_for(change),
            tier=engagement_tier(score),
            last_updated=now,
        )

    async def _read(self, fn: Callable[..., Awaitable[T]], *args) -> T:
        async with self._semaphore:
            async with self.session_factory() as db:
                return await fn(db, *args)

    # -- signal readers -----------------------------------------------------

    @staticmethod
    async def _session_attendance(
        db: AsyncSession, client_id: uuid.UUID, coach_id: uuid.UUID, now: datetime
    ) -> int:
        result = await db.execute(
            select(CoachingSession.status).where(
                CoachingSession.client_id == client_id,
                CoachingSession.coach_id == coach_id,
                CoachingSession.scheduled_at >= now - SESSION_WINDOW,
            )
        )
        return session_attendance_score(result.scalars().all())

    @staticmethod
    async def _habit_completion(
        db: AsyncSession, client_id: uuid.UUID, now: datetime
    ) -> int:
        result = await db.execute(
            select(HabitLog.completed_count, ClientHabit.target_count)
            .join(ClientHabit, HabitLog.habit_id == ClientHabit.id)
            .where(
                ClientHabit.client_id == client_id,
                HabitLog.logged_at >= (now - HABIT_WINDOW).date(),
            )
        )
        return habit_completion_score(result.all())

    @staticmethod
    async def _message_responsiveness(
        db: AsyncSession, client_id: uuid.UUID, now: datetime
    ) -> int:
        result = await db.execute(
            select(Message.created_at, Message.sender_id)
            .where(
                or_(Message.sender_id == client_id, Message.receiver_id == client_id),
                Message.created_at >= now - MESSAGE_WINDOW,
            )
            .order_by(Message.created_at.asc())
        )
        return message_responsiveness_score(result.all(), client_id)

    @staticmethod
    async def _progress_logging(
        db: AsyncSession, client_id: uuid.UUID, now: datetime
    ) -> int:
        count = await db.scalar(
            select(func.count())
            .select_from(ClientProgress)
            .where(
                ClientProgress.client_id == client_id,
                ClientProgress.recorded_at >= now - PROGRESS_WINDOW,
            )
        )
        return progress_logging_score(count or 0)

    @staticmethod
    async def _plan_adherence(
        db: AsyncSession, client_id: uuid.UUID, now: datetime
    ) -> int:
        count = await db.scalar(
            select(func.count())
            .select_from(TrainingLog)
            .where(
                TrainingLog.client_id == client_id,
                TrainingLog.logged_at >= now - TRAINING_WINDOW,
            )
        )
        return plan_adherence_score(count or 0)


# ============================================================================
# PERSISTENCE
# ============================================================================


async def upsert_engagement_score(
    db: AsyncSession,
    *,
    client_id: uuid.UUID,
    coach_id: uuid.UUID,
    overall: int,
    breakdown: EngagementScoreBreakdown,
    week_over_week_change: int,
    updated_at: datetime,
) -> None:
    """Insert or overwrite the score row for (client, coach).

    Each write replaces the whole row, so concurrent recomputations resolve
    as last-writer-wins.
    """
    values = {
        "overall_score": overall,
        "session_attendance_score": breakdown.session_attendance,
        "habit_completion_score": breakdown.habit_completion,
        "message_responsiveness_score": breakdown.message_responsiveness,
        "progress_logging_score": breakdown.progress_logging,
        "plan_adherence_score": breakdown.plan_adherence,
        "week_over_week_change": week_over_week_change,
        "updated_at": updated_at,
    }

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Engagement upsert not supported on {dialect}")

    stmt = insert(ClientEngagementScore).values(
        id=uuid.uuid4(), client_id=client_id, coach_id=coach_id, **values
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["client_id", "coach_id"],
        set_={name: getattr(stmt.excluded, name) for name in values},
    )
    await db.execute(stmt)
    logger.debug("Upserted engagement score %d for client %s", overall, client_id)
