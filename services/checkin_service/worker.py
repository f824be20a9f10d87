"""ARQ worker for check-in service background tasks.

Fans out staff alerts for failed check-ins when
CHECKIN_NOTIFICATION_BACKEND=arq.
Run with: arq services.checkin_service.worker.WorkerSettings
"""

import uuid

from libs.common.arq_config import get_redis_settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def startup(ctx: dict):
    configure_logging()


# ARQ requires top-level async callables; the name must match FAN_OUT_TASK_NAME
async def task_fan_out_check_in_failure(ctx: dict, gym_id: str, alert: dict) -> int:
    """Create urgent staff notifications for a denied check-in."""
    from libs.db.config import AsyncSessionLocal
    from services.checkin_service.services.notifications import (
        fan_out_check_in_failure,
    )

    async with AsyncSessionLocal() as db:
        count = await fan_out_check_in_failure(db, uuid.UUID(gym_id), alert)
    logger.info("Sent %d check-in failure alerts for gym %s", count, gym_id)
    return count


class WorkerSettings:
    """ARQ worker settings."""

    redis_settings = get_redis_settings()
    on_startup = startup

    functions = [task_fan_out_check_in_failure]

    # Alerts are best-effort; retry briefly then drop
    max_tries = 3
