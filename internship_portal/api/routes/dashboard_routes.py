"""
Dashboard Routes

GET /dashboard - Role-scoped summary for the current user.
Clients poll this on a timer; each call is independent.
"""

from fastapi import APIRouter, Depends

from internship_portal.core.auth import get_current_user
from internship_portal.services.dashboard_service import DashboardService, get_dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def get_dashboard(
    user: dict = Depends(get_current_user),
    dashboards: DashboardService = Depends(get_dashboard_service)
):
    # Sync handler: FastAPI runs it in its threadpool
    return {"success": True, "data": dashboards.for_user(user)}
