"""Unit tests for EngagementScoringEngine against the test database."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from services.engagement_service.models import (
    ClientEngagementScore,
    CoachClientStatus,
    CoachingSessionStatus,
)
from services.engagement_service.services.scoring import EngagementScoringEngine
from sqlalchemy import select
from tests.factories import (
    ClientHabitFactory,
    ClientProfileFactory,
    ClientProgressFactory,
    CoachClientFactory,
    CoachingSessionFactory,
    CoachProfileFactory,
    HabitLogFactory,
    MessageFactory,
    TrainingLogFactory,
)

COACH_USER_ID = "coach-user"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _seed_coach(db, user_id=COACH_USER_ID):
    coach = CoachProfileFactory.create(user_id=user_id)
    db.add(coach)
    await db.commit()
    return coach


async def _add_client(db, coach, status=CoachClientStatus.ACTIVE, **profile):
    client = ClientProfileFactory.create(**profile)
    db.add(client)
    await db.flush()
    db.add(CoachClientFactory.create(coach_id=coach.id, client_id=client.id, status=status))
    await db.commit()
    return client


async def _make_engaged(db, coach, client):
    """Perfect signals: every sub-score is 100."""
    now = datetime.now(timezone.utc)
    habit = ClientHabitFactory.create(client_id=client.id, target_count=1)
    db.add(habit)
    await db.flush()
    db.add_all(
        [
            CoachingSessionFactory.create(coach_id=coach.id, client_id=client.id),
            HabitLogFactory.create(habit_id=habit.id, completed_count=1),
            MessageFactory.create(
                sender_id=coach.id, receiver_id=client.id, created_at=now - timedelta(hours=3)
            ),
            MessageFactory.create(
                sender_id=client.id, receiver_id=coach.id, created_at=now - timedelta(hours=2)
            ),
            ClientProgressFactory.create(client_id=client.id),
            ClientProgressFactory.create(client_id=client.id),
            TrainingLogFactory.create(client_id=client.id),
            TrainingLogFactory.create(client_id=client.id),
            TrainingLogFactory.create(client_id=client.id),
        ]
    )
    await db.commit()


async def _make_disengaged(db, coach, client):
    """Missed session and habit, nothing logged: 0 + 0 + 50 + 0 + 50."""
    habit = ClientHabitFactory.create(client_id=client.id, target_count=1)
    db.add(habit)
    await db.flush()
    db.add_all(
        [
            CoachingSessionFactory.create(
                coach_id=coach.id,
                client_id=client.id,
                status=CoachingSessionStatus.NO_SHOW,
            ),
            HabitLogFactory.create(habit_id=habit.id, completed_count=0),
        ]
    )
    await db.commit()


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_client_without_data_gets_neutral_scores(db_session, session_factory):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach, first_name="Ada", last_name="Obi")

    [result] = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert result.client_id == client.id
    assert result.client_name == "Ada Obi"
    assert result.breakdown.model_dump() == {
        "session_attendance": 50,
        "habit_completion": 50,
        "message_responsiveness": 50,
        "progress_logging": 0,
        "plan_adherence": 50,
    }
    # 12.5 + 12.5 + 7.5 + 0 + 7.5
    assert result.overall_score == 40
    assert result.tier == "at_risk"
    assert result.week_over_week_change == 0
    assert result.trend == "stable"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_results_sorted_lowest_first(db_session, session_factory):
    coach = await _seed_coach(db_session)
    engaged = await _add_client(db_session, coach)
    neutral = await _add_client(db_session, coach)
    disengaged = await _add_client(db_session, coach)
    await _make_engaged(db_session, coach, engaged)
    await _make_disengaged(db_session, coach, disengaged)

    results = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert [r.overall_score for r in results] == [15, 40, 100]
    assert [r.client_id for r in results] == [disengaged.id, neutral.id, engaged.id]
    assert results[-1].tier == "highly_engaged"
    assert results[0].tier == "disengaged"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_old_and_other_coach_sessions_are_ignored(db_session, session_factory):
    coach = await _seed_coach(db_session)
    other_coach = await _seed_coach(db_session, user_id="other-coach")
    client = await _add_client(db_session, coach)
    db_session.add_all(
        [
            CoachingSessionFactory.create(
                coach_id=coach.id,
                client_id=client.id,
                status=CoachingSessionStatus.NO_SHOW,
                scheduled_at=datetime.now(timezone.utc) - timedelta(days=40),
            ),
            CoachingSessionFactory.create(
                coach_id=other_coach.id,
                client_id=client.id,
                status=CoachingSessionStatus.NO_SHOW,
            ),
            CoachingSessionFactory.create(coach_id=coach.id, client_id=client.id),
        ]
    )
    await db_session.commit()

    [result] = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert result.breakdown.session_attendance == 100


@pytest.mark.asyncio
@pytest.mark.unit
async def test_message_reply_after_five_hours_scores_80(db_session, session_factory):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach)
    sent = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.add_all(
        [
            MessageFactory.create(sender_id=coach.id, receiver_id=client.id, created_at=sent),
            MessageFactory.create(
                sender_id=client.id,
                receiver_id=coach.id,
                created_at=sent + timedelta(hours=5),
            ),
        ]
    )
    await db_session.commit()

    [result] = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert result.breakdown.message_responsiveness == 80


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.filterwarnings("error::sqlalchemy.exc.SADeprecationWarning")
async def test_habit_and_message_reads_raise_no_deprecation_warnings(
    db_session, session_factory
):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach)
    await _make_engaged(db_session, coach, client)

    [result] = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert result.breakdown.habit_completion == 100
    assert result.breakdown.message_responsiveness == 100


# ---------------------------------------------------------------------------
# Roster selection
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_coach_returns_empty(session_factory):
    results = await EngagementScoringEngine(session_factory).compute_engagement(
        "nobody"
    )
    assert results == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_active_relationships_are_scored(db_session, session_factory):
    coach = await _seed_coach(db_session)
    active = await _add_client(db_session, coach)
    await _add_client(db_session, coach, status=CoachClientStatus.PENDING)
    await _add_client(db_session, coach, status=CoachClientStatus.ENDED)

    results = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert [r.client_id for r in results] == [active.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_single_client_filter(db_session, session_factory):
    coach = await _seed_coach(db_session)
    await _add_client(db_session, coach)
    target = await _add_client(db_session, coach)

    results = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID, client_id=target.id
    )

    assert [r.client_id for r in results] == [target.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_single_client_filter_for_unrelated_client(db_session, session_factory):
    coach = await _seed_coach(db_session)
    await _add_client(db_session, coach)

    results = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID, client_id=uuid.uuid4()
    )

    assert results == []


# ---------------------------------------------------------------------------
# Persistence and week-over-week change
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_recompute_is_idempotent(db_session, session_factory):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach)
    await _make_engaged(db_session, coach, client)
    engine = EngagementScoringEngine(session_factory)

    [first] = await engine.compute_engagement(COACH_USER_ID)
    [second] = await engine.compute_engagement(COACH_USER_ID)

    assert first.overall_score == second.overall_score == 100
    assert second.week_over_week_change == 0
    assert second.trend == "stable"

    rows = (
        (await db_session.execute(select(ClientEngagementScore))).scalars().all()
    )
    assert len(rows) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_change_measured_against_stored_score(db_session, session_factory):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach)
    db_session.add(
        ClientEngagementScore(
            client_id=client.id,
            coach_id=coach.id,
            overall_score=30,
            session_attendance_score=30,
            habit_completion_score=30,
            message_responsiveness_score=30,
            progress_logging_score=30,
            plan_adherence_score=30,
            week_over_week_change=0,
        )
    )
    await db_session.commit()

    [result] = await EngagementScoringEngine(session_factory).compute_engagement(
        COACH_USER_ID
    )

    assert result.overall_score == 40
    assert result.week_over_week_change == 10
    assert result.trend == "up"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_score_row_is_overwritten(session_factory, db_session):
    coach = await _seed_coach(db_session)
    client = await _add_client(db_session, coach)
    fixed_now = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)
    engine = EngagementScoringEngine(session_factory, now=lambda: fixed_now)

    await engine.compute_engagement(COACH_USER_ID)

    async with session_factory() as db:
        row = (
            await db.execute(
                select(ClientEngagementScore).where(
                    ClientEngagementScore.client_id == client.id
                )
            )
        ).scalar_one()
    assert row.coach_id == coach.id
    assert row.overall_score == 40
    assert row.progress_logging_score == 0
    assert row.session_attendance_score == 50
    assert row.updated_at.replace(tzinfo=timezone.utc) == fixed_now


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_failed_client_is_left_out(db_session, session_factory):
    coach = await _seed_coach(db_session)
    broken = await _add_client(db_session, coach)
    healthy = await _add_client(db_session, coach)
    engine = EngagementScoringEngine(session_factory)
    original = engine.score_client

    async def flaky_score_client(coach_id, profile, now):
        if profile.id == broken.id:
            raise RuntimeError("read replica unavailable")
        return await original(coach_id, profile, now)

    engine.score_client = flaky_score_client

    results = await engine.compute_engagement(COACH_USER_ID)

    assert [r.client_id for r in results] == [healthy.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_slow_client_is_left_out(db_session, session_factory):
    coach = await _seed_coach(db_session)
    slow = await _add_client(db_session, coach)
    fast = await _add_client(db_session, coach)
    engine = EngagementScoringEngine(session_factory, client_timeout=0.5)
    original = engine.score_client

    async def stalling_score_client(coach_id, profile, now):
        if profile.id == slow.id:
            await asyncio.sleep(5)
        return await original(coach_id, profile, now)

    engine.score_client = stalling_score_client

    results = await engine.compute_engagement(COACH_USER_ID)

    assert [r.client_id for r in results] == [fast.id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_concurrency_limit_of_one_still_scores_everyone(
    db_session, session_factory
):
    coach = await _seed_coach(db_session)
    for _ in range(4):
        await _add_client(db_session, coach)

    results = await EngagementScoringEngine(
        session_factory, max_concurrency=1
    ).compute_engagement(COACH_USER_ID)

    assert len(results) == 4
