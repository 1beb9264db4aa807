"""Dashboard endpoints."""

from fastapi import APIRouter

from app.core.dependencies import AdminSession, Store
from app.schemas.dashboard import DashboardStats
from app.services.dashboard import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardStats)
def get_dashboard(context: AdminSession, store: Store):
    """
    Get exam and result statistics for the admin dashboard.
    Requires admin role.
    """
    return DashboardService(store).get_stats()
