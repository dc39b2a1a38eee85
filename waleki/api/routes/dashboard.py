"""
Dashboard statistics endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import structlog

from waleki.api.deps import get_current_user
from waleki.database.connection import get_database
from waleki.schemas.auth import CurrentUser
from waleki.schemas.dashboard import DashboardStats
from waleki.services.aggregation import compute_dashboard_stats

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: Session = Depends(get_database),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Device counts and reading statistics for the trailing window"""
    return compute_dashboard_stats(db)
