"""
Unit Tests for Streak Tracking

Tests for the daily streak rules and StreakTrackingService:
- First action of a day continues yesterday's streak or starts at 1
- Later actions of the same day only raise the count
- Activity levels for the heatmap
- History windows filled with empty days
"""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from learnloop.db.models_learning import UserStreak
from learnloop.services.learning.streak_tracking import (
    StreakTrackingService,
    StreakUpdate,
    calculate_activity_level,
    compute_streak_update,
)


def _record(day: date, count: int, streak: int, user_id: str = "user-1") -> UserStreak:
    return UserStreak(user_id=user_id, date=day, message_count=count, current_streak=streak)


# =============================================================================
# Streak Rules
# =============================================================================


class TestComputeStreakUpdate:
    """Tests for the pure streak rule."""

    def test_first_action_ever_starts_streak_at_one(self) -> None:
        assert compute_streak_update(None, None) == StreakUpdate(1, 1)

    def test_first_action_of_day_continues_yesterday(self, today: date) -> None:
        """Yesterday streak 4, nothing today -> count 1, streak 5."""
        yesterday = _record(today - timedelta(days=1), count=2, streak=4)

        update = compute_streak_update(None, yesterday)

        assert update.message_count == 1
        assert update.current_streak == 5

    def test_later_action_same_day_keeps_streak(self, today: date) -> None:
        """Today {count 2, streak 3} -> count 3, streak 3."""
        today_record = _record(today, count=2, streak=3)
        yesterday = _record(today - timedelta(days=1), count=9, streak=2)

        update = compute_streak_update(today_record, yesterday)

        assert update == StreakUpdate(message_count=3, current_streak=3)

    def test_gap_restarts_streak_at_one(self) -> None:
        """No record for yesterday means the streak starts over."""
        assert compute_streak_update(None, None).current_streak == 1

    def test_empty_today_record_is_treated_as_first_action(self, today: date) -> None:
        today_record = _record(today, count=0, streak=0)
        yesterday = _record(today - timedelta(days=1), count=1, streak=6)

        update = compute_streak_update(today_record, yesterday)

        assert update == StreakUpdate(message_count=1, current_streak=7)

    def test_missing_counters_count_as_zero(self, today: date) -> None:
        yesterday = UserStreak(user_id="user-1", date=today - timedelta(days=1))

        update = compute_streak_update(None, yesterday)

        assert update == StreakUpdate(message_count=1, current_streak=1)


class TestCalculateActivityLevel:
    """Tests for heatmap levels."""

    @pytest.mark.parametrize(
        "count,max_count,expected",
        [
            (0, 10, 0),
            (5, 0, 0),
            (1, 10, 1),
            (3, 10, 2),
            (5, 10, 3),
            (8, 10, 4),
            (10, 10, 4),
        ],
    )
    def test_levels(self, count: int, max_count: int, expected: int) -> None:
        assert calculate_activity_level(count, max_count) == expected


# =============================================================================
# StreakTrackingService
# =============================================================================


class TestRecordActivity:
    """Tests for StreakTrackingService.record_activity."""

    async def test_inserts_record_on_first_action_of_day(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        yesterday = _record(today - timedelta(days=1), count=3, streak=4, user_id=user_id)
        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(None), make_result(yesterday)]
        )
        service = StreakTrackingService(mock_db_session)

        status = await service.record_activity(user_id, today=today)

        assert status.date == today
        assert status.message_count == 1
        assert status.current_streak == 5
        assert status.is_active_today is True

        added = mock_db_session.add.call_args[0][0]
        assert isinstance(added, UserStreak)
        assert added.user_id == user_id
        assert added.date == today
        assert added.current_streak == 5
        mock_db_session.flush.assert_awaited()

    async def test_updates_existing_record(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        today_record = _record(today, count=2, streak=3, user_id=user_id)
        mock_db_session.execute = AsyncMock(
            side_effect=[make_result(today_record), make_result(None)]
        )
        service = StreakTrackingService(mock_db_session)

        status = await service.record_activity(user_id, today=today)

        assert status.message_count == 3
        assert status.current_streak == 3
        assert today_record.message_count == 3
        mock_db_session.add.assert_not_called()


class TestTodayStatus:
    """Tests for StreakTrackingService.get_today_status."""

    async def test_no_record_returns_zeros(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        mock_db_session.execute = AsyncMock(return_value=make_result(None))
        service = StreakTrackingService(mock_db_session)

        status = await service.get_today_status(user_id, today=today)

        assert status.message_count == 0
        assert status.current_streak == 0
        assert status.is_active_today is False

    async def test_existing_record(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        mock_db_session.execute = AsyncMock(
            return_value=make_result(_record(today, count=4, streak=9, user_id=user_id))
        )
        service = StreakTrackingService(mock_db_session)

        status = await service.get_today_status(user_id, today=today)

        assert status.message_count == 4
        assert status.current_streak == 9
        assert status.is_active_today is True


class TestActivityHistory:
    """Tests for StreakTrackingService.get_activity_history."""

    async def test_fills_missing_days_oldest_first(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        rows = [
            _record(today - timedelta(days=2), count=4, streak=1, user_id=user_id),
            _record(today, count=1, streak=1, user_id=user_id),
        ]
        mock_db_session.execute = AsyncMock(return_value=make_result(rows=rows))
        service = StreakTrackingService(mock_db_session)

        history = await service.get_activity_history(user_id, days=3, today=today)

        assert [day.date for day in history.days] == [
            today - timedelta(days=2),
            today - timedelta(days=1),
            today,
        ]
        assert [day.message_count for day in history.days] == [4, 0, 1]
        assert [day.level for day in history.days] == [4, 0, 2]
        assert history.total_active_days == 2
        assert history.total_messages == 5
        assert history.max_daily_count == 4
        assert history.current_streak == 1

    async def test_window_is_clamped(
        self, mock_db_session: AsyncMock, make_result, user_id: str, today: date
    ) -> None:
        mock_db_session.execute = AsyncMock(return_value=make_result(rows=[]))
        service = StreakTrackingService(mock_db_session)

        short = await service.get_activity_history(user_id, days=0, today=today)
        long = await service.get_activity_history(user_id, days=5000, today=today)

        assert len(short.days) == 1
        assert len(long.days) == 365
        assert long.current_streak == 0
