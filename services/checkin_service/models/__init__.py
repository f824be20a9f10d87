"""Check-in Service models package."""

from services.checkin_service.models.core import (
    CheckInRecord,
    Gym,
    GymMember,
    GymStaff,
    Membership,
    MembershipPlan,
    StaffNotification,
)
from services.checkin_service.models.enums import (
    ALERTED_STAFF_ROLES,
    CheckInMethod,
    MembershipStatus,
    MemberStatus,
    NotificationType,
    StaffRole,
    StaffStatus,
)

__all__ = [
    "ALERTED_STAFF_ROLES",
    "CheckInMethod",
    "CheckInRecord",
    "Gym",
    "GymMember",
    "GymStaff",
    "Membership",
    "MembershipPlan",
    "MembershipStatus",
    "MemberStatus",
    "NotificationType",
    "StaffNotification",
    "StaffRole",
    "StaffStatus",
]
