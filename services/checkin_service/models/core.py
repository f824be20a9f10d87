"""Gym, member, membership and check-in models."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.checkin_service.models.enums import (
    CheckInMethod,
    MembershipStatus,
    MemberStatus,
    NotificationType,
    StaffRole,
    StaffStatus,
    enum_values,
)
from sqlalchemy import JSON, Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Gym(Base):
    __tablename__ = "gyms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


class GymMember(Base):
    """A gym's customer.

    Members are never hard-deleted; staff and billing webhooks move them
    between statuses instead.
    """

    __tablename__ = "gym_members"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)

    status: Mapped[MemberStatus] = mapped_column(
        SAEnum(
            MemberStatus,
            name="gym_member_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=MemberStatus.ACTIVE,
    )

    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    memberships: Mapped[list["Membership"]] = relationship(
        "Membership",
        back_populates="member",
        order_by="Membership.created_at",
    )

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or "Member"

    def __repr__(self):
        return f"<GymMember {self.id} status={self.status}>"


class MembershipPlan(Base):
    __tablename__ = "membership_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    unlimited_classes: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


class Membership(Base):
    """A member's subscription instance.

    ``end_date`` of None means the membership never expires.
    ``credits_remaining`` is only meaningful when the plan is not unlimited.
    """

    __tablename__ = "gym_memberships"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gym_members.id"), nullable=False, index=True
    )
    plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("membership_plans.id"), nullable=True
    )

    status: Mapped[MembershipStatus] = mapped_column(
        SAEnum(
            MembershipStatus,
            name="gym_membership_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=MembershipStatus.ACTIVE,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    credits_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    member: Mapped["GymMember"] = relationship(
        "GymMember", back_populates="memberships"
    )
    plan: Mapped[Optional["MembershipPlan"]] = relationship("MembershipPlan")

    @property
    def is_unlimited(self) -> bool:
        return bool(self.plan and self.plan.unlimited_classes)

    def __repr__(self):
        return f"<Membership {self.id} status={self.status} credits={self.credits_remaining}>"


class GymStaff(Base):
    __tablename__ = "gym_staff"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    role: Mapped[StaffRole] = mapped_column(
        SAEnum(
            StaffRole,
            name="gym_staff_role_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=StaffRole.STAFF,
    )
    status: Mapped[StaffStatus] = mapped_column(
        SAEnum(
            StaffStatus,
            name="gym_staff_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=StaffStatus.ACTIVE,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


class CheckInRecord(Base):
    """Immutable audit row written for every admitted check-in."""

    __tablename__ = "gym_check_ins"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    member_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gym_members.id"), nullable=False, index=True
    )
    check_in_method: Mapped[CheckInMethod] = mapped_column(
        SAEnum(
            CheckInMethod,
            name="check_in_method_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=CheckInMethod.QR_CODE,
    )
    checked_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    member: Mapped["GymMember"] = relationship("GymMember")

    def __repr__(self):
        return f"<CheckInRecord Gym={self.gym_id} Member={self.member_id}>"


class StaffNotification(Base):
    __tablename__ = "gym_staff_notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    gym_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gyms.id"), nullable=False, index=True
    )
    staff_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("gym_staff.id"), nullable=False, index=True
    )
    type: Mapped[NotificationType] = mapped_column(
        SAEnum(
            NotificationType,
            name="gym_staff_notification_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    is_urgent: Mapped[bool] = mapped_column(Boolean, default=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
