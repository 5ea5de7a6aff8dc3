"""
Streaks API Router

Endpoints:
    GET  /api/streaks/today     - Today's message count and streak
    POST /api/streaks/activity  - Record one qualifying activity
    GET  /api/streaks/history   - Per-day activity for a trailing window
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.config import settings
from learnloop.db.base import get_db
from learnloop.dependencies import get_current_user_id
from learnloop.middleware.error_handling import handle_endpoint_errors
from learnloop.middleware.rate_limit import limit_analytics
from learnloop.models.learning import ActivityHistoryResponse, StreakStatus
from learnloop.services.learning.streak_tracking import StreakTrackingService

router = APIRouter(prefix="/api/streaks", tags=["streaks"])


async def get_streak_service(
    db: AsyncSession = Depends(get_db),
) -> StreakTrackingService:
    return StreakTrackingService(db)


@router.get("/today", response_model=StreakStatus)
@handle_endpoint_errors("Get streak")
async def get_today(
    user_id: str = Depends(get_current_user_id),
    service: StreakTrackingService = Depends(get_streak_service),
) -> StreakStatus:
    """Today's message count and current streak (zeros if inactive today)."""
    return await service.get_today_status(user_id)


@router.post("/activity", response_model=StreakStatus)
@handle_endpoint_errors("Record activity")
async def record_activity(
    user_id: str = Depends(get_current_user_id),
    service: StreakTrackingService = Depends(get_streak_service),
) -> StreakStatus:
    """
    Record one qualifying activity for today.

    The first activity of a day continues yesterday's streak or starts a
    new one at 1; later activities only raise today's count.
    """
    return await service.record_activity(user_id)


@router.get("/history", response_model=ActivityHistoryResponse)
@limit_analytics
@handle_endpoint_errors("Get activity history")
async def get_history(
    request: Request,
    days: int = Query(
        90,
        ge=1,
        le=settings.ACTIVITY_HISTORY_MAX_DAYS,
        description="Number of days to include, today included",
    ),
    user_id: str = Depends(get_current_user_id),
    service: StreakTrackingService = Depends(get_streak_service),
) -> ActivityHistoryResponse:
    """Per-day activity, oldest first, with levels for a heatmap."""
    return await service.get_activity_history(user_id, days=days)
