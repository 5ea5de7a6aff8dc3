"""
Learning Path Service

Tracks a user's position in a 7-day curriculum.

A path starts at day 1 with a streak of 0. Each completed tutoring session
moves it forward by one day (never past the last day), adds one to the
streak and stamps the completion date. Skipped days do not reset anything.

Usage:
    from learnloop.services.learning.learning_path import LearningPathService

    service = LearningPathService(db)
    path = await service.get_path(user_id, template_id)
    path = await service.complete_day(user_id, template_id)
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.config import settings
from learnloop.db.models_learning import (
    LearningTemplate,
    LessonProgress,
    UserLearningPath,
)
from learnloop.enums.learning import LessonStatus
from learnloop.middleware.error_handling import NotFoundError
from learnloop.models.learning import LearningPathListResponse, LearningPathResponse
from learnloop.services.learning.streak_tracking import utc_today

logger = logging.getLogger(__name__)

# Curricula are one week long; no template or setting can stretch a path
MAX_PATH_DAYS = 7


def path_length(template: Optional[LearningTemplate]) -> int:
    """Number of days on a path through `template`, capped at MAX_PATH_DAYS."""
    days = settings.LEARNING_PATH_DAYS
    if template is not None and template.total_lessons:
        days = template.total_lessons
    return max(1, min(days, MAX_PATH_DAYS))


@dataclass(frozen=True)
class LearningPathAdvance:
    """New values for a learning path after a completed session."""

    current_day: int
    streak_count: int
    last_lesson_date: date


def advance_learning_path(
    current_day: int,
    streak_count: int,
    today: date,
    total_days: int = MAX_PATH_DAYS,
) -> LearningPathAdvance:
    """
    Advance a learning path by one completed session.

    Args:
        current_day: Day the session was for.
        streak_count: Completed sessions so far.
        today: Calendar day of completion.
        total_days: Length of the curriculum; current_day is clamped to it
            and never exceeds MAX_PATH_DAYS.

    Returns:
        LearningPathAdvance with the next day, incremented streak and today.
    """
    return LearningPathAdvance(
        current_day=min(current_day + 1, total_days, MAX_PATH_DAYS),
        streak_count=streak_count + 1,
        last_lesson_date=today,
    )


class LearningPathService:
    """Service for reading and advancing users' learning paths."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_path_record(
        self, user_id: str, template_id: str
    ) -> Optional[UserLearningPath]:
        result = await self.db.execute(
            select(UserLearningPath).where(
                UserLearningPath.user_id == user_id,
                UserLearningPath.template_id == template_id,
            )
        )
        return result.scalars().first()

    async def _require_path_record(
        self, user_id: str, template_id: str
    ) -> UserLearningPath:
        path = await self.get_path_record(user_id, template_id)
        if path is None:
            raise NotFoundError(f"Learning path for template {template_id} not found")
        return path

    async def _count_completed(self, user_id: str, template_id: str) -> int:
        result = await self.db.execute(
            select(func.count(LessonProgress.id)).where(
                LessonProgress.user_id == user_id,
                LessonProgress.template_id == template_id,
                LessonProgress.status == LessonStatus.COMPLETED.value,
            )
        )
        return result.scalar_one() or 0

    async def _to_response(
        self,
        path: UserLearningPath,
        template: Optional[LearningTemplate] = None,
    ) -> LearningPathResponse:
        total_days = path_length(template)
        completed = await self._count_completed(path.user_id, path.template_id)
        return LearningPathResponse.from_db_record(
            path,
            total_days=total_days,
            template_title=template.title if template else None,
            days_completed=completed,
        )

    async def get_path(self, user_id: str, template_id: str) -> LearningPathResponse:
        """
        Get the user's path through a template.

        Raises:
            NotFoundError: If the user has no path for this template.
        """
        path = await self._require_path_record(user_id, template_id)
        template = await self.db.get(LearningTemplate, template_id)
        return await self._to_response(path, template)

    async def list_paths(self, user_id: str) -> LearningPathListResponse:
        """List all of the user's learning paths, newest first."""
        result = await self.db.execute(
            select(UserLearningPath, LearningTemplate)
            .join(LearningTemplate, LearningTemplate.id == UserLearningPath.template_id)
            .where(UserLearningPath.user_id == user_id)
            .order_by(UserLearningPath.created_at.desc())
        )
        paths = [await self._to_response(path, template) for path, template in result.all()]
        return LearningPathListResponse(paths=paths, total=len(paths))

    async def create_path(self, user_id: str, template_id: str) -> UserLearningPath:
        """Start a path at day 1 with no completed sessions."""
        path = UserLearningPath(
            user_id=user_id,
            template_id=template_id,
            current_day=1,
            streak_count=0,
            last_lesson_date=None,
        )
        self.db.add(path)
        await self.db.flush()
        logger.info(f"Created learning path for user {user_id} on template {template_id}")
        return path

    async def complete_day(
        self,
        user_id: str,
        template_id: str,
        today: Optional[date] = None,
    ) -> UserLearningPath:
        """
        Advance the path after a completed session.

        Note:
            Read-modify-write without row locking, like the streak update.

        Raises:
            NotFoundError: If the user has no path for this template.
        """
        path = await self._require_path_record(user_id, template_id)
        template = await self.db.get(LearningTemplate, template_id)
        total_days = path_length(template)

        advance = advance_learning_path(
            current_day=path.current_day,
            streak_count=path.streak_count or 0,
            today=today or utc_today(),
            total_days=total_days,
        )
        path.current_day = advance.current_day
        path.streak_count = advance.streak_count
        path.last_lesson_date = advance.last_lesson_date
        await self.db.flush()

        logger.info(
            f"Advanced learning path {template_id} for user {user_id}: "
            f"day {advance.current_day}/{total_days}, streak {advance.streak_count}"
        )
        return path

    async def path_response(
        self, path: UserLearningPath, template: Optional[LearningTemplate] = None
    ) -> LearningPathResponse:
        """Build the API response for a path row."""
        if template is None:
            template = await self.db.get(LearningTemplate, path.template_id)
        return await self._to_response(path, template)
