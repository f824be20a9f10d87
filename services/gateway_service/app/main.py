"""FastAPI application entrypoint for the FitHub gateway.

Serves the check-in and engagement routers from one process under
``/api/v1`` for deployments that do not run the services separately.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from libs.common.config import get_settings
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import install_rate_limiter
from services.checkin_service.routers import check_ins_router
from services.checkin_service.services.notifications import (
    get_notification_dispatcher,
)
from services.engagement_service.routers import scores_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_notification_dispatcher().close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title="FitHub Gateway Service",
        version="0.1.0",
        description="API Gateway that serves the FitHub check-in and engagement APIs.",
        lifespan=lifespan,
    )

    install_rate_limiter(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    app.include_router(check_ins_router, prefix="/api/v1")
    app.include_router(scores_router, prefix="/api/v1")

    return app


app = create_app()
