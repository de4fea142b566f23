"""Dashboard API router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import SessionContext, get_dashboard_service, get_session_context, require_view_access
from core.logger import get_logger
from database.deps import get_db_read
from schemas import DashboardResponse, DashboardSummary
from services.dashboard import DashboardService

logger = get_logger("api.dashboard")
router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/{user_id}", response_model=DashboardResponse)
async def read_dashboard(
    user_id: int,
    nutrition_period: str = Query("7d", description="7d or 30d"),
    weight_period: str = Query("30d", description="7d, 30d or 90d"),
    insight_limit: Optional[int] = Query(None, ge=1, le=13, description="Maximum number of insights"),
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Full dashboard of a viewable user.

    The three data domains are fetched concurrently; a domain whose query
    fails is rendered as empty rather than failing the request.
    """
    target = require_view_access(db, session, user_id)
    return await service.dashboard(
        db, target, nutrition_period=nutrition_period, weight_period=weight_period, insight_limit=insight_limit
    )


@router.get("/{user_id}/summary", response_model=DashboardSummary)
async def read_summary(
    user_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Summary card numbers of a viewable user.

    Raises:
        DashboardTimeoutError: If the 30-day collection exceeds the timeout.
    """
    target = require_view_access(db, session, user_id)
    return await service.summary(db, target)
