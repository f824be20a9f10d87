"""FastAPI application for the Check-in Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import install_rate_limiter
from services.checkin_service.routers import check_ins_router
from services.checkin_service.services.notifications import (
    get_notification_dispatcher,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let queued staff alerts finish before the process exits
    await get_notification_dispatcher().close()


def create_app() -> FastAPI:
    """Create and configure the Check-in Service FastAPI app."""
    app = FastAPI(
        title="FitHub Check-in Service",
        version="0.1.0",
        description="Gym check-in admission control for FitHub.",
        lifespan=lifespan,
    )

    install_rate_limiter(app)
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "checkin"}

    app.include_router(check_ins_router)

    return app


app = create_app()
