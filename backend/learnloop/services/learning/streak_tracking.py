"""
Daily Streak and Activity History Tracking Service

Keeps one activity record per (user, calendar day) and derives the
consecutive-day streak from today's and yesterday's records.

Responsibilities:
- Decide whether a qualifying action continues or starts a streak
- Persist today's message count and streak
- Provide daily activity history for heatmaps

Streak rule (see compute_streak_update):
- First action today and a record for yesterday → yesterday's streak + 1
- Later action today → today's streak unchanged
- First action today and no record for yesterday → 1

A missed day never decrements a stored streak; the next active day simply
starts again at 1 because yesterday has no record.

Usage:
    from learnloop.services.learning.streak_tracking import StreakTrackingService

    service = StreakTrackingService(db)
    status = await service.record_activity(user_id)
    history = await service.get_activity_history(user_id, days=90)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.config import settings
from learnloop.db.models_learning import UserStreak
from learnloop.models.learning import (
    ActivityDay,
    ActivityHistoryResponse,
    StreakStatus,
)

logger = logging.getLogger(__name__)


def utc_today() -> date:
    """The current calendar day in UTC."""
    return datetime.now(timezone.utc).date()


@dataclass(frozen=True)
class StreakUpdate:
    """New counters for today's activity record."""

    message_count: int
    current_streak: int


def compute_streak_update(
    today_record: Optional[UserStreak],
    yesterday_record: Optional[UserStreak],
) -> StreakUpdate:
    """
    Compute today's counters after one more qualifying action.

    A missing record is treated as zero counters.

    Args:
        today_record: Today's activity record, if any.
        yesterday_record: Yesterday's activity record, if any.

    Returns:
        StreakUpdate with the incremented message count and the streak.

    Example:
        >>> compute_streak_update(None, UserStreak(message_count=3, current_streak=4))
        StreakUpdate(message_count=1, current_streak=5)
    """
    today_count = (today_record.message_count or 0) if today_record else 0
    today_streak = (today_record.current_streak or 0) if today_record else 0

    if today_count == 0 and yesterday_record is not None:
        new_streak = (yesterday_record.current_streak or 0) + 1
    elif today_count > 0:
        new_streak = today_streak
    else:
        new_streak = 1

    return StreakUpdate(message_count=today_count + 1, current_streak=new_streak)


def calculate_activity_level(count: int, max_count: int) -> int:
    """
    Calculate activity level (0-4) based on count relative to max.

    Used for heatmap visualizations where higher levels indicate more activity.
    Thresholds are configured in settings (ACTIVITY_LEVEL_*).

    Args:
        count: Activity count for the day.
        max_count: Maximum activity count across all days.

    Returns:
        Activity level from 0 (no activity) to 4 (high activity).
    """
    if max_count == 0 or count == 0:
        return 0

    ratio = count / max_count
    if ratio >= settings.ACTIVITY_LEVEL_HIGH:
        return 4
    elif ratio >= settings.ACTIVITY_LEVEL_MEDIUM_HIGH:
        return 3
    elif ratio >= settings.ACTIVITY_LEVEL_MEDIUM:
        return 2
    else:
        return 1


class StreakTrackingService:
    """
    Service for daily activity records and streaks.

    The `today` parameter on each method exists so callers (and tests)
    can pin the calendar day; it defaults to the current UTC date.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the streak tracking service.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    async def _get_record(self, user_id: str, day: date) -> Optional[UserStreak]:
        result = await self.db.execute(
            select(UserStreak).where(
                UserStreak.user_id == user_id,
                UserStreak.date == day,
            )
        )
        return result.scalars().first()

    async def record_activity(
        self, user_id: str, today: Optional[date] = None
    ) -> StreakStatus:
        """
        Record one qualifying action for the user.

        Reads today's and yesterday's records, applies compute_streak_update
        and writes today's record (insert or update).

        Note:
            This is a read-modify-write without row locking. Two concurrent
            first-of-day actions can race on the (user_id, date) unique key.

        Args:
            user_id: Acting user.
            today: Calendar day to record on (defaults to today, UTC).

        Returns:
            StreakStatus after the update.
        """
        today = today or utc_today()
        today_record = await self._get_record(user_id, today)
        yesterday_record = await self._get_record(user_id, today - timedelta(days=1))

        update = compute_streak_update(today_record, yesterday_record)

        if today_record is None:
            today_record = UserStreak(
                user_id=user_id,
                date=today,
                message_count=update.message_count,
                current_streak=update.current_streak,
            )
            self.db.add(today_record)
        else:
            today_record.message_count = update.message_count
            today_record.current_streak = update.current_streak

        await self.db.flush()

        if update.message_count == 1:
            logger.info(
                f"Streak for user {user_id} on {today}: {update.current_streak} day(s)"
            )

        return StreakStatus(
            date=today,
            message_count=update.message_count,
            current_streak=update.current_streak,
            is_active_today=True,
        )

    async def get_today_status(
        self, user_id: str, today: Optional[date] = None
    ) -> StreakStatus:
        """
        Get today's message count and streak.

        Returns zeros when the user has no record for today.
        """
        today = today or utc_today()
        record = await self._get_record(user_id, today)
        if record is None:
            return StreakStatus(date=today)

        return StreakStatus(
            date=today,
            message_count=record.message_count or 0,
            current_streak=record.current_streak or 0,
            is_active_today=(record.message_count or 0) > 0,
        )

    async def get_activity_history(
        self,
        user_id: str,
        days: int = 90,
        today: Optional[date] = None,
    ) -> ActivityHistoryResponse:
        """
        Get daily activity for the trailing `days` days (today included).

        Days without a record are filled in with zeros so the result is a
        contiguous, oldest-first series.

        Args:
            user_id: User whose history to load.
            days: Window length, clamped to 1..ACTIVITY_HISTORY_MAX_DAYS.
            today: Last day of the window (defaults to today, UTC).

        Returns:
            ActivityHistoryResponse with per-day counts and activity levels.
        """
        today = today or utc_today()
        days = max(1, min(days, settings.ACTIVITY_HISTORY_MAX_DAYS))
        start = today - timedelta(days=days - 1)

        result = await self.db.execute(
            select(UserStreak)
            .where(
                UserStreak.user_id == user_id,
                UserStreak.date >= start,
                UserStreak.date <= today,
            )
            .order_by(UserStreak.date)
        )
        records = {record.date: record for record in result.scalars().all()}

        max_count = max((r.message_count or 0 for r in records.values()), default=0)

        history = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            record = records.get(day)
            count = (record.message_count or 0) if record else 0
            history.append(
                ActivityDay(
                    date=day,
                    message_count=count,
                    current_streak=(record.current_streak or 0) if record else 0,
                    level=calculate_activity_level(count, max_count),
                )
            )

        today_record = records.get(today)
        return ActivityHistoryResponse(
            days=history,
            total_active_days=sum(1 for day in history if day.message_count > 0),
            total_messages=sum(day.message_count for day in history),
            max_daily_count=max_count,
            current_streak=(today_record.current_streak or 0) if today_record else 0,
        )
