import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from services.checkin_service.models.enums import CheckInMethod

MEMBER_NOT_FOUND = "Member not found"
NO_ACTIVE_MEMBERSHIP = "No active membership"
MEMBERSHIP_EXPIRED = "Membership expired"
NO_CREDITS_REMAINING = "No credits remaining"
CHECK_IN_TIMED_OUT = "Check-in timed out"


class CheckInVerdict(BaseModel):
    """Outcome of a single admission decision. Never persisted."""

    success: bool
    member_name: str
    member_id: Optional[uuid.UUID] = None
    reason: Optional[str] = None
    membership_status: Optional[str] = None
    credits_remaining: Optional[int] = None

    @classmethod
    def deny(cls, reason: str, member_name: str = "Unknown", **fields) -> "CheckInVerdict":
        return cls(success=False, member_name=member_name, reason=reason, **fields)

    def notification_payload(self) -> dict:
        """Structured data attached to staff alerts for this verdict."""
        return {
            "memberId": str(self.member_id) if self.member_id else None,
            "reason": self.reason,
            "membershipStatus": self.membership_status,
            "creditsRemaining": self.credits_remaining,
        }


class CheckInRequest(BaseModel):
    # Opaque identifier from a scanned code or a front-desk lookup
    member_id: str = Field(..., min_length=1)


class FeedbackResponse(BaseModel):
    kind: Literal["admitted", "denied"]
    flash: Literal["green", "red"]
    flash_duration_ms: int
    tone_url: str
    message: str


class CheckInResponse(BaseModel):
    verdict: CheckInVerdict
    feedback: Optional[FeedbackResponse] = None


class CheckInRecordResponse(BaseModel):
    id: uuid.UUID
    gym_id: uuid.UUID
    member_id: uuid.UUID
    check_in_method: CheckInMethod
    checked_in_at: datetime

    # Populated from the member join
    member_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
