import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import day_bounds, utc_now
from libs.common.rate_limit import check_in_scan_limit, limiter
from libs.db.session import get_async_db
from services.checkin_service.models import (
    CheckInMethod,
    CheckInRecord,
    Gym,
    GymStaff,
    StaffStatus,
)
from services.checkin_service.schemas import (
    CheckInRecordResponse,
    CheckInRequest,
    CheckInResponse,
    FeedbackResponse,
)
from services.checkin_service.services.feedback import (
    TONES,
    FeedbackEvent,
    ToneFeedbackSink,
    synthesize_tone,
)
from services.checkin_service.services.notifications import (
    NotificationDispatcher,
    get_notification_dispatcher,
)
from services.checkin_service.services.validator import CheckInValidator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["check-ins"])


async def require_gym_staff(
    gym_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> GymStaff:
    """Ensure the caller is active staff of the gym in the path."""
    gym = await db.get(Gym, gym_id)
    if not gym:
        raise HTTPException(status_code=404, detail="Gym not found")

    result = await db.execute(
        select(GymStaff).where(
            GymStaff.gym_id == gym_id,
            GymStaff.user_id == current_user.user_id,
            GymStaff.status == StaffStatus.ACTIVE,
        )
    )
    staff = result.scalars().first()
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Gym staff access required",
        )
    return staff


def _feedback_response(
    request: Request, event: Optional[FeedbackEvent]
) -> Optional[FeedbackResponse]:
    if event is None:
        return None
    return FeedbackResponse(
        kind=event.kind,
        flash=event.flash,
        flash_duration_ms=event.flash_duration_ms,
        tone_url=request.url_for("get_feedback_tone", tone_name=event.tone.name).path,
        message=event.message,
    )


async def _run_check_in(
    request: Request,
    gym_id: uuid.UUID,
    member_id: str,
    method: CheckInMethod,
    db: AsyncSession,
    notifier: NotificationDispatcher,
) -> CheckInResponse:
    settings = get_settings()
    sink = ToneFeedbackSink(flash_duration_ms=settings.CHECKIN_FLASH_DURATION_MS)
    validator = CheckInValidator(
        db,
        gym_id,
        feedback=sink,
        notifier=notifier,
        timeout=settings.CHECKIN_TIMEOUT_SECONDS,
        decrement_credits=settings.CHECKIN_DECREMENT_CREDITS,
    )
    verdict = await validator.validate_and_check_in(member_id, method=method)
    return CheckInResponse(
        verdict=verdict, feedback=_feedback_response(request, sink.last_event)
    )


@router.post("/gyms/{gym_id}/check-ins/scan", response_model=CheckInResponse)
@limiter.limit(check_in_scan_limit)
async def scan_check_in(
    request: Request,
    gym_id: uuid.UUID,
    payload: CheckInRequest,
    staff: GymStaff = Depends(require_gym_staff),
    db: AsyncSession = Depends(get_async_db),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Validate a scanned member code and check the member in.

    Denials are normal results and still return 200.
    """
    return await _run_check_in(
        request, gym_id, payload.member_id, CheckInMethod.QR_CODE, db, notifier
    )


@router.post("/gyms/{gym_id}/check-ins/manual", response_model=CheckInResponse)
@limiter.limit(check_in_scan_limit)
async def manual_check_in(
    request: Request,
    gym_id: uuid.UUID,
    payload: CheckInRequest,
    staff: GymStaff = Depends(require_gym_staff),
    db: AsyncSession = Depends(get_async_db),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    Front-desk check-in for a member looked up by hand.
    """
    return await _run_check_in(
        request, gym_id, payload.member_id, CheckInMethod.MANUAL, db, notifier
    )


@router.get("/gyms/{gym_id}/check-ins", response_model=List[CheckInRecordResponse])
async def list_check_ins(
    gym_id: uuid.UUID,
    day: Optional[date] = Query(None, description="Defaults to today (UTC)"),
    staff: GymStaff = Depends(require_gym_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """
    List the gym's check-ins for one day, newest first.
    """
    start, end = day_bounds(day or utc_now().date())
    query = (
        select(CheckInRecord)
        .where(
            CheckInRecord.gym_id == gym_id,
            CheckInRecord.checked_in_at >= start,
            CheckInRecord.checked_in_at < end,
        )
        .options(selectinload(CheckInRecord.member))
        .order_by(CheckInRecord.checked_in_at.desc())
    )
    result = await db.execute(query)

    responses = []
    for record in result.scalars().all():
        resp = CheckInRecordResponse.model_validate(record)
        resp.member_name = record.member.display_name if record.member else None
        responses.append(resp)
    return responses


@router.get("/check-ins/feedback/tones/{tone_name}.wav")
async def get_feedback_tone(tone_name: str):
    """
    Serve the synthesised admit/deny tone as WAV audio.
    """
    tone = TONES.get(tone_name)
    if tone is None:
        raise HTTPException(status_code=404, detail="Tone not found")
    return Response(
        content=synthesize_tone(tone),
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=86400"},
    )
