"""Enum definitions for check-in service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    BANNED = "banned"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    PAUSED = "paused"


class CheckInMethod(str, enum.Enum):
    QR_CODE = "qr_code"
    MANUAL = "manual"
    OTHER = "other"


class StaffRole(str, enum.Enum):
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"
    TRAINER = "trainer"
    FRONT_DESK = "front_desk"


class StaffStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class NotificationType(str, enum.Enum):
    CHECK_IN_FAILED = "check_in_failed"


# Roles that receive urgent check-in failure alerts
ALERTED_STAFF_ROLES = (StaffRole.OWNER, StaffRole.MANAGER, StaffRole.STAFF)
