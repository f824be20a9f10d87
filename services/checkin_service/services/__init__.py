"""Check-in Service business logic."""

from services.checkin_service.services.feedback import (
    ADMIT_TONE,
    DENY_TONE,
    TONES,
    FeedbackEvent,
    FeedbackSink,
    ToneFeedbackSink,
    ToneSpec,
    synthesize_tone,
)
from services.checkin_service.services.notifications import (
    ArqNotificationDispatcher,
    InlineNotificationDispatcher,
    NotificationDispatcher,
    fan_out_check_in_failure,
    get_notification_dispatcher,
)
from services.checkin_service.services.validator import (
    CheckInValidator,
    find_active_membership,
)

__all__ = [
    "ADMIT_TONE",
    "ArqNotificationDispatcher",
    "CheckInValidator",
    "DENY_TONE",
    "FeedbackEvent",
    "FeedbackSink",
    "InlineNotificationDispatcher",
    "NotificationDispatcher",
    "TONES",
    "ToneFeedbackSink",
    "ToneSpec",
    "fan_out_check_in_failure",
    "find_active_membership",
    "get_notification_dispatcher",
    "synthesize_tone",
]
