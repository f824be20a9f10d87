"""FastAPI application for the Engagement Service."""

from fastapi import FastAPI
from libs.common.middleware import add_observability_middleware
from services.engagement_service.routers import scores_router


def create_app() -> FastAPI:
    """Create and configure the Engagement Service FastAPI app."""
    app = FastAPI(
        title="FitHub Engagement Service",
        version="0.1.0",
        description="Client engagement scoring for FitHub coaches.",
    )

    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "engagement"}

    app.include_router(scores_router)

    return app


app = create_app()
