"""Engagement service routers package."""

from services.engagement_service.routers.scores import router as scores_router

__all__ = ["scores_router"]
