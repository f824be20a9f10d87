"""Integration tests for engagement_service endpoints."""

import uuid

import pytest
from libs.common.config import get_settings
from tests.conftest import TEST_USER_ID
from tests.factories import (
    ClientProfileFactory,
    CoachClientFactory,
    CoachProfileFactory,
    TrainingLogFactory,
)


async def _seed_roster(db, clients=2):
    coach = CoachProfileFactory.create(user_id=TEST_USER_ID)
    profiles = [ClientProfileFactory.create() for _ in range(clients)]
    db.add(coach)
    db.add_all(profiles)
    await db.flush()
    db.add_all(
        [CoachClientFactory.create(coach_id=coach.id, client_id=p.id) for p in profiles]
    )
    await db.commit()
    return coach, profiles


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_scores_for_roster(engagement_client, db_session):
    """GET /engagement/scores: one entry per active client, lowest first."""
    _, (busy, idle) = await _seed_roster(db_session)
    db_session.add_all([TrainingLogFactory.create(client_id=busy.id) for _ in range(3)])
    await db_session.commit()

    response = await engagement_client.get("/engagement/scores")

    assert response.status_code == 200, response.text
    data = response.json()
    assert [item["client_id"] for item in data] == [str(idle.id), str(busy.id)]
    assert data[0]["overall_score"] == 40
    assert data[1]["breakdown"]["plan_adherence"] == 100
    assert data[1]["overall_score"] == 48
    assert {"trend", "tier", "week_over_week_change", "last_updated"} <= set(data[0])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_scores_for_single_client(engagement_client, db_session):
    _, (first, _) = await _seed_roster(db_session)

    response = await engagement_client.get(
        "/engagement/scores", params={"client_id": str(first.id)}
    )

    assert response.status_code == 200
    assert [item["client_id"] for item in response.json()] == [str(first.id)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_scores_without_coach_profile(engagement_client, db_session):
    response = await engagement_client.get("/engagement/scores")

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stored_score_after_compute(engagement_client, db_session):
    coach, (client, _) = await _seed_roster(db_session)

    missing = await engagement_client.get(f"/engagement/scores/{client.id}/stored")
    assert missing.status_code == 404

    await engagement_client.get("/engagement/scores")
    stored = await engagement_client.get(f"/engagement/scores/{client.id}/stored")

    assert stored.status_code == 200
    data = stored.json()
    assert data["coach_id"] == str(coach.id)
    assert data["overall_score"] == 40
    assert data["week_over_week_change"] == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stored_score_unknown_client(engagement_client, db_session):
    await _seed_roster(db_session)

    response = await engagement_client.get(f"/engagement/scores/{uuid.uuid4()}/stored")

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_scoring_disabled_by_flag(engagement_client, db_session, monkeypatch):
    await _seed_roster(db_session)
    monkeypatch.setattr(get_settings(), "CLIENT_ENGAGEMENT_SCORING", False)

    response = await engagement_client.get("/engagement/scores")

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_gateway_serves_engagement_under_api_prefix(gateway_client, db_session):
    await _seed_roster(db_session, clients=1)

    response = await gateway_client.get("/api/v1/engagement/scores")

    assert response.status_code == 200
    assert len(response.json()) == 1
