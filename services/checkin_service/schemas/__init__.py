"""Check-in Service schemas package."""

from services.checkin_service.schemas.main import (
    CHECK_IN_TIMED_OUT,
    MEMBER_NOT_FOUND,
    MEMBERSHIP_EXPIRED,
    NO_ACTIVE_MEMBERSHIP,
    NO_CREDITS_REMAINING,
    CheckInRecordResponse,
    CheckInRequest,
    CheckInResponse,
    CheckInVerdict,
    FeedbackResponse,
)

__all__ = [
    "CHECK_IN_TIMED_OUT",
    "MEMBER_NOT_FOUND",
    "MEMBERSHIP_EXPIRED",
    "NO_ACTIVE_MEMBERSHIP",
    "NO_CREDITS_REMAINING",
    "CheckInRecordResponse",
    "CheckInRequest",
    "CheckInResponse",
    "CheckInVerdict",
    "FeedbackResponse",
]
