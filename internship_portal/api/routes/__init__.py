"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from internship_portal.api.routes.auth_routes import router as auth_router
from internship_portal.api.routes.internship_routes import router as internship_router
from internship_portal.api.routes.application_routes import router as application_router
from internship_portal.api.routes.notification_routes import router as notification_router
from internship_portal.api.routes.stats_routes import router as stats_router
from internship_portal.api.routes.dashboard_routes import router as dashboard_router
from internship_portal.api.routes.meeting_routes import router as meeting_router
from internship_portal.api.routes.user_routes import router as user_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(internship_router)
api_router.include_router(application_router)
api_router.include_router(notification_router)
api_router.include_router(stats_router)
api_router.include_router(dashboard_router)
api_router.include_router(meeting_router)
api_router.include_router(user_router)
