"""Engagement Service models package."""

from services.engagement_service.models.core import (
    ClientEngagementScore,
    ClientHabit,
    ClientProfile,
    ClientProgress,
    CoachClient,
    CoachingSession,
    CoachProfile,
    HabitLog,
    Message,
    TrainingLog,
)
from services.engagement_service.models.enums import (
    CoachClientStatus,
    CoachingSessionStatus,
)

__all__ = [
    "ClientEngagementScore",
    "ClientHabit",
    "ClientProfile",
    "ClientProgress",
    "CoachClient",
    "CoachClientStatus",
    "CoachingSession",
    "CoachingSessionStatus",
    "CoachProfile",
    "HabitLog",
    "Message",
    "TrainingLog",
]
