"""Engagement Service schemas package."""

from services.engagement_service.schemas.main import (
    ClientEngagementData,
    ClientEngagementScoreResponse,
    EngagementScoreBreakdown,
    EngagementTier,
    Trend,
)

__all__ = [
    "ClientEngagementData",
    "ClientEngagementScoreResponse",
    "EngagementScoreBreakdown",
    "EngagementTier",
    "Trend",
]
