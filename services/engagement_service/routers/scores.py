import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.session import get_async_db, get_session_factory
from services.engagement_service.models import ClientEngagementScore, CoachProfile
from services.engagement_service.schemas import (
    ClientEngagementData,
    ClientEngagementScoreResponse,
)
from services.engagement_service.services.scoring import EngagementScoringEngine
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

router = APIRouter(prefix="/engagement", tags=["engagement"])


def require_engagement_scoring() -> None:
    if not get_settings().CLIENT_ENGAGEMENT_SCORING:
        raise HTTPException(status_code=404, detail="Engagement scoring is disabled")


@router.get(
    "/scores",
    response_model=List[ClientEngagementData],
    dependencies=[Depends(require_engagement_scoring)],
)
async def get_engagement_scores(
    client_id: Optional[uuid.UUID] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Recompute engagement scores for the calling coach's active clients.

    Sorted lowest score first so clients needing attention lead the list.
    """
    settings = get_settings()
    engine = EngagementScoringEngine(
        session_factory,
        client_timeout=settings.ENGAGEMENT_CLIENT_TIMEOUT_SECONDS,
        max_concurrency=settings.ENGAGEMENT_MAX_CONCURRENCY,
    )
    return await engine.compute_engagement(current_user.user_id, client_id=client_id)


@router.get(
    "/scores/{client_id}/stored",
    response_model=ClientEngagementScoreResponse,
    dependencies=[Depends(require_engagement_scoring)],
)
async def get_stored_engagement_score(
    client_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Return the score stored by the last computation, without recomputing.
    """
    query = (
        select(ClientEngagementScore)
        .join(CoachProfile, CoachProfile.id == ClientEngagementScore.coach_id)
        .where(
            CoachProfile.user_id == current_user.user_id,
            ClientEngagementScore.client_id == client_id,
        )
    )
    result = await db.execute(query)
    score = result.scalar_one_or_none()
    if not score:
        raise HTTPException(status_code=404, detail="No engagement score recorded")
    return score
