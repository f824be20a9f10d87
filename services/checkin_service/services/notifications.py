"""Staff alerts for failed check-ins.

Alerts are best-effort. The validator hands a failed verdict to a
dispatcher and returns immediately; the fan-out runs in the background
either in-process (``InlineNotificationDispatcher``) or on the arq worker
(``ArqNotificationDispatcher``). Every error on this path is logged and
swallowed.
"""

import asyncio
import uuid
from functools import lru_cache
from typing import Any, Awaitable, Protocol

from arq import create_pool
from libs.common.arq_config import get_redis_settings
from libs.common.logging import get_logger
from services.checkin_service.models import (
    ALERTED_STAFF_ROLES,
    GymStaff,
    NotificationType,
    StaffNotification,
    StaffStatus,
)
from services.checkin_service.schemas import CheckInVerdict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)

FAN_OUT_TASK_NAME = "task_fan_out_check_in_failure"


def failure_alert(verdict: CheckInVerdict) -> dict[str, Any]:
    """Serialisable alert content for a denied check-in."""
    return {
        "title": f"Check-in Failed: {verdict.member_name}",
        "message": verdict.reason or "Unknown error",
        "data": verdict.notification_payload(),
    }


async def fan_out_check_in_failure(
    db: AsyncSession, gym_id: uuid.UUID, alert: dict[str, Any]
) -> int:
    """Insert one urgent notification per alerted staff member.

    Returns the number of notifications created.
    """
    result = await db.execute(
        select(GymStaff).where(
            GymStaff.gym_id == gym_id,
            GymStaff.role.in_(ALERTED_STAFF_ROLES),
            GymStaff.status == StaffStatus.ACTIVE,
        )
    )
    staff = result.scalars().all()
    if not staff:
        return 0

    db.add_all(
        [
            StaffNotification(
                gym_id=gym_id,
                staff_id=member.id,
                type=NotificationType.CHECK_IN_FAILED,
                title=alert["title"],
                message=alert["message"],
                data=alert["data"],
                is_urgent=True,
            )
            for member in staff
        ]
    )
    await db.commit()
    return len(staff)


class NotificationDispatcher(Protocol):
    def dispatch_check_in_failure(
        self, gym_id: uuid.UUID, verdict: CheckInVerdict
    ) -> None: ...

    async def close(self) -> None: ...


class _BackgroundDispatcher:
    """Runs dispatch coroutines as tracked background tasks."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every in-flight dispatch to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()


class InlineNotificationDispatcher(_BackgroundDispatcher):
    """Fans out alerts on the current event loop using a dedicated session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.session_factory = session_factory

    def dispatch_check_in_failure(
        self, gym_id: uuid.UUID, verdict: CheckInVerdict
    ) -> None:
        self._spawn(self._fan_out(gym_id, failure_alert(verdict)))

    async def _fan_out(self, gym_id: uuid.UUID, alert: dict[str, Any]) -> None:
        try:
            async with self.session_factory() as db:
                count = await fan_out_check_in_failure(db, gym_id, alert)
            logger.info("Sent %d check-in failure alerts for gym %s", count, gym_id)
        except Exception:
            logger.exception("Failed to create check-in failure alerts for gym %s", gym_id)


class ArqNotificationDispatcher(_BackgroundDispatcher):
    """Enqueues the fan-out on the arq worker."""

    def __init__(self, redis_settings=None):
        super().__init__()
        self.redis_settings = redis_settings
        self._pool = None

    async def _get_pool(self):
        if self._pool is None:
            self._pool = await create_pool(self.redis_settings or get_redis_settings())
        return self._pool

    def dispatch_check_in_failure(
        self, gym_id: uuid.UUID, verdict: CheckInVerdict
    ) -> None:
        self._spawn(self._enqueue(gym_id, failure_alert(verdict)))

    async def _enqueue(self, gym_id: uuid.UUID, alert: dict[str, Any]) -> None:
        try:
            pool = await self._get_pool()
            await pool.enqueue_job(FAN_OUT_TASK_NAME, str(gym_id), alert)
        except Exception:
            logger.exception("Failed to enqueue check-in failure alerts for gym %s", gym_id)

    async def close(self) -> None:
        await self.drain()
        if self._pool is not None:
            await self._pool.close()
            self._pool = None


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency returning the configured dispatcher, cached."""
    from libs.common.config import get_settings

    if get_settings().CHECKIN_NOTIFICATION_BACKEND == "arq":
        return ArqNotificationDispatcher()

    from libs.db.config import AsyncSessionLocal

    return InlineNotificationDispatcher(AsyncSessionLocal)
