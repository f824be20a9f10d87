import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Trend = Literal["up", "down", "stable"]
EngagementTier = Literal["highly_engaged", "engaged", "at_risk", "disengaged"]


class EngagementScoreBreakdown(BaseModel):
    """The five 0-100 sub-scores behind an engagement score."""

    session_attendance: int = Field(..., ge=0, le=100)
    habit_completion: int = Field(..., ge=0, le=100)
    message_responsiveness: int = Field(..., ge=0, le=100)
    progress_logging: int = Field(..., ge=0, le=100)
    plan_adherence: int = Field(..., ge=0, le=100)


class ClientEngagementData(BaseModel):
    client_id: uuid.UUID
    client_name: Optional[str] = None
    avatar_url: Optional[str] = None
    overall_score: int = Field(..., ge=0, le=100)
    breakdown: EngagementScoreBreakdown
    week_over_week_change: int
    trend: Trend
    tier: EngagementTier
    last_updated: datetime


class ClientEngagementScoreResponse(BaseModel):
    """Stored score row, as persisted."""

    client_id: uuid.UUID
    coach_id: uuid.UUID
    overall_score: int
    session_attendance_score: int
    habit_completion_score: int
    message_responsiveness_score: int
    progress_logging_score: int
    plan_adherence_score: int
    week_over_week_change: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
