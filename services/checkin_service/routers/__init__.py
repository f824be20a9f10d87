"""Check-in service routers package."""

from services.checkin_service.routers.check_ins import router as check_ins_router

__all__ = ["check_ins_router"]
