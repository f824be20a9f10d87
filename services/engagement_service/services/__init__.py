"""Engagement Service business logic."""

from services.engagement_service.services.scoring import (
    SCORE_WEIGHTS,
    EngagementScoringEngine,
    engagement_tier,
    habit_completion_score,
    message_responsiveness_score,
    overall_score,
    plan_adherence_score,
    progress_logging_score,
    response_time_score,
    round_half_up,
    session_attendance_score,
    trend_for,
    upsert_engagement_score,
)

__all__ = [
    "EngagementScoringEngine",
    "SCORE_WEIGHTS",
    "engagement_tier",
    "habit_completion_score",
    "message_responsiveness_score",
    "overall_score",
    "plan_adherence_score",
    "progress_logging_score",
    "response_time_score",
    "round_half_up",
    "session_attendance_score",
    "trend_for",
    "upsert_engagement_score",
]
