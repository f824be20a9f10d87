"""Gym check-in admission control.

``CheckInValidator`` decides whether a scanned member may enter:

1. Look up the member in the bound gym, with memberships and plans
2. Member status must be ``active``
3. An ``active`` membership must exist
4. It must not have expired
5. It must have credits, unless the plan is unlimited
6. Record the check-in

The first failing step decides the verdict; later steps are not evaluated.
Every outcome is reported to the feedback sink, and denials are also handed
to the notification dispatcher. Lookup errors deny (fail closed); feedback
and notification errors never change the verdict (fail open).

Concurrency: with ``decrement_credits=False`` two simultaneous scans of a
member holding exactly one credit can both pass step 5, because nothing
guards the balance between the check and the insert. With the decrement
enabled the balance is reduced by a conditional UPDATE in the same
transaction as the check-in insert, and the loser of the race is denied.
"""

import asyncio
import uuid
from typing import Optional, Union

from libs.common.datetime_utils import ensure_aware, utc_now
from libs.common.logging import get_logger
from services.checkin_service.models import (
    CheckInMethod,
    CheckInRecord,
    GymMember,
    Membership,
    MembershipStatus,
    MemberStatus,
)
from services.checkin_service.schemas import (
    CHECK_IN_TIMED_OUT,
    MEMBER_NOT_FOUND,
    MEMBERSHIP_EXPIRED,
    NO_ACTIVE_MEMBERSHIP,
    NO_CREDITS_REMAINING,
    CheckInVerdict,
)
from services.checkin_service.services.feedback import FeedbackSink
from services.checkin_service.services.notifications import NotificationDispatcher
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


def _parse_member_id(member_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(member_id, uuid.UUID):
        return member_id
    try:
        return uuid.UUID(str(member_id).strip())
    except ValueError:
        return None


def find_active_membership(member: GymMember) -> Optional[Membership]:
    """Return the first membership with status ``active``, if any."""
    return next(
        (m for m in member.memberships if m.status == MembershipStatus.ACTIVE),
        None,
    )


class CheckInValidator:
    def __init__(
        self,
        db: AsyncSession,
        gym_id: uuid.UUID,
        *,
        feedback: Optional[FeedbackSink] = None,
        notifier: Optional[NotificationDispatcher] = None,
        timeout: Optional[float] = None,
        decrement_credits: bool = True,
    ):
        self.db = db
        self.gym_id = gym_id
        self.feedback = feedback
        self.notifier = notifier
        self.timeout = timeout
        self.decrement_credits = decrement_credits

        self._processing = False
        self.last_result: Optional[CheckInVerdict] = None

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def validate_and_check_in(
        self,
        member_id: Union[str, uuid.UUID],
        method: CheckInMethod = CheckInMethod.QR_CODE,
    ) -> CheckInVerdict:
        """Run the admission pipeline for one scan and return its verdict."""
        self._processing = True
        try:
            if self.timeout:
                verdict = await asyncio.wait_for(
                    self._evaluate(member_id, method), timeout=self.timeout
                )
            else:
                verdict = await self._evaluate(member_id, method)
        except asyncio.TimeoutError:
            logger.warning(
                "Check-in for member %s at gym %s timed out after %ss",
                member_id,
                self.gym_id,
                self.timeout,
            )
            await self._safe_rollback()
            verdict = CheckInVerdict.deny(CHECK_IN_TIMED_OUT)
        finally:
            self._processing = False

        self.last_result = verdict
        self._report(verdict)
        return verdict

    async def _evaluate(
        self, member_id: Union[str, uuid.UUID], method: CheckInMethod
    ) -> CheckInVerdict:
        member = await self._lookup_member(member_id)
        if member is None:
            return CheckInVerdict.deny(MEMBER_NOT_FOUND)

        member_name = member.display_name

        if member.status != MemberStatus.ACTIVE:
            status_label = MemberStatus(member.status).value
            return CheckInVerdict.deny(
                f"Member status: {status_label}",
                member_name=member_name,
                member_id=member.id,
                membership_status=status_label,
            )

        membership = find_active_membership(member)
        if membership is None:
            return CheckInVerdict.deny(
                NO_ACTIVE_MEMBERSHIP,
                member_name=member_name,
                member_id=member.id,
                membership_status="no_membership",
            )

        end_date = ensure_aware(membership.end_date)
        if end_date is not None and end_date < utc_now():
            return CheckInVerdict.deny(
                MEMBERSHIP_EXPIRED,
                member_name=member_name,
                member_id=member.id,
                membership_status="expired",
            )

        unlimited = membership.is_unlimited
        credits = membership.credits_remaining or 0
        if not unlimited and credits <= 0:
            return self._no_credits(member_name, member.id)

        # Captured before commit; the verdict reports the balance that passed
        # the credit check.
        member_pk = member.id
        membership_pk = membership.id

        try:
            admitted = await self._admit(
                member_pk, membership_pk, method, consume_credit=not unlimited
            )
        except SQLAlchemyError as exc:
            logger.exception(
                "Failed to record check-in for member %s at gym %s",
                member_pk,
                self.gym_id,
            )
            await self._safe_rollback()
            return CheckInVerdict.deny(
                str(exc) or "Check-in failed",
                member_name=member_name,
                member_id=member_pk,
            )

        if not admitted:
            logger.warning(
                "Credit for membership %s was consumed by a concurrent check-in",
                membership_pk,
            )
            return self._no_credits(member_name, member_pk)

        return CheckInVerdict(
            success=True,
            member_name=member_name,
            member_id=member_pk,
            membership_status="active",
            credits_remaining=credits,
        )

    async def _lookup_member(
        self, member_id: Union[str, uuid.UUID]
    ) -> Optional[GymMember]:
        parsed = _parse_member_id(member_id)
        if parsed is None:
            return None

        query = (
            select(GymMember)
            .where(GymMember.id == parsed, GymMember.gym_id == self.gym_id)
            .options(selectinload(GymMember.memberships).selectinload(Membership.plan))
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError:
            # A failed read must never be taken as permission to enter
            logger.exception(
                "Member lookup failed for %s at gym %s; denying", parsed, self.gym_id
            )
            await self._safe_rollback()
            return None

    async def _admit(
        self,
        member_id: uuid.UUID,
        membership_id: uuid.UUID,
        method: CheckInMethod,
        consume_credit: bool,
    ) -> bool:
        """Persist the check-in. Returns False if the last credit was taken."""
        if consume_credit and self.decrement_credits:
            result = await self.db.execute(
                update(Membership)
                .where(
                    Membership.id == membership_id,
                    Membership.credits_remaining > 0,
                )
                .values(
                    credits_remaining=Membership.credits_remaining - 1,
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return False

        self.db.add(
            CheckInRecord(
                gym_id=self.gym_id,
                member_id=member_id,
                check_in_method=method,
            )
        )
        await self.db.commit()
        return True

    def _no_credits(self, member_name: str, member_id: uuid.UUID) -> CheckInVerdict:
        return CheckInVerdict.deny(
            NO_CREDITS_REMAINING,
            member_name=member_name,
            member_id=member_id,
            membership_status="active",
            credits_remaining=0,
        )

    async def _safe_rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed after check-in error")

    def _report(self, verdict: CheckInVerdict) -> None:
        if verdict.success:
            logger.info(
                "Admitted member %s at gym %s", verdict.member_id, self.gym_id
            )
        else:
            logger.warning(
                "Denied check-in at gym %s for %s: %s",
                self.gym_id,
                verdict.member_id or "unknown member",
                verdict.reason,
            )

        if self.feedback is not None:
            try:
                if verdict.success:
                    self.feedback.on_admit(verdict)
                else:
                    self.feedback.on_deny(verdict)
            except Exception:
                logger.exception("Check-in feedback sink failed")

        if not verdict.success and self.notifier is not None:
            try:
                self.notifier.dispatch_check_in_failure(self.gym_id, verdict)
            except Exception:
                logger.exception(
                    "Failed to dispatch check-in failure alert for gym %s",
                    self.gym_id,
                )
