"""
Learning System API Models (Pydantic)

Request/response schemas for the Learning System API including:
- Daily activity streaks and the activity heatmap
- Generated curricula (templates and lessons)
- Learning paths
- AI tutor sessions

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: learnloop/db/models_learning.py

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

from learnloop.enums.learning import DifficultyLevel, LessonStatus, MessageRole
from learnloop.models.base import StrictRequest, StrictResponse

if TYPE_CHECKING:
    from learnloop.db.models_learning import (
        LearningTemplate,
        TutorSession,
        UserLearningPath,
    )


# ===========================================
# Streak Models
# ===========================================


class StreakStatus(BaseModel):
    """
    Daily activity status for a user.

    `message_count` is today's number of qualifying actions and
    `current_streak` the consecutive-day streak as of today. Both are
    zero when the user has not been active today.
    """

    date: dt.date
    message_count: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    is_active_today: bool = False


class ActivityDay(BaseModel):
    """
    Single day of activity for the heatmap.

    Days without a record are included with zero counts so the client
    can render a contiguous grid.
    """

    date: dt.date
    message_count: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    level: int = Field(
        0, ge=0, le=4, description="Activity level 0-4 for heatmap coloring"
    )


class ActivityHistoryResponse(BaseModel):
    """Daily activity over a trailing window, oldest first."""

    days: list[ActivityDay] = Field(default_factory=list)
    total_active_days: int = Field(0, description="Days with at least one action")
    total_messages: int = 0
    max_daily_count: int = Field(0, description="Most actions on a single day")
    current_streak: int = 0


# ===========================================
# Curriculum Models
# ===========================================


class LessonContent(BaseModel):
    """Structured body of a lesson."""

    objectives: list[str] = Field(default_factory=list)
    key_concepts: list[str] = Field(default_factory=list)
    practice_focus: str = ""


class LessonResponse(StrictResponse):
    id: str
    template_id: str
    day_number: int = Field(..., ge=1)
    lesson_title: str
    lesson_content: LessonContent


class TemplateResponse(StrictResponse):
    """A generated curriculum without its lessons."""

    id: str
    title: str
    description: Optional[str] = None
    subject: str
    difficulty_level: str
    total_lessons: int
    estimated_days: int
    created_at: dt.datetime


class TemplateDetail(TemplateResponse):
    lessons: list[LessonResponse] = Field(default_factory=list)

    @classmethod
    def from_db_record(cls, record: LearningTemplate) -> TemplateDetail:
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            subject=record.subject,
            difficulty_level=record.difficulty_level,
            total_lessons=record.total_lessons,
            estimated_days=record.estimated_days,
            created_at=record.created_at,
            lessons=[LessonResponse.model_validate(lesson) for lesson in record.lessons],
        )


class CurriculumRequest(StrictRequest):
    """
    Request to generate a new 7-day curriculum.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    subject: str = Field(..., min_length=2, max_length=200)
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER
    goal: Optional[str] = Field(
        None, max_length=1000, description="What the learner wants to achieve"
    )


# ===========================================
# Learning Path Models
# ===========================================


class LearningPathResponse(BaseModel):
    """
    A user's position in a curriculum.

    `is_finished` is True once the last day has been completed; the
    pointer stays on the last day from then on.
    """

    template_id: str
    template_title: Optional[str] = None
    current_day: int = Field(..., ge=1)
    total_days: int
    streak_count: int = Field(0, ge=0)
    last_lesson_date: Optional[dt.date] = None
    is_finished: bool = False

    @classmethod
    def from_db_record(
        cls,
        record: UserLearningPath,
        total_days: int,
        template_title: Optional[str] = None,
        days_completed: Optional[int] = None,
    ) -> LearningPathResponse:
        """
        Build the response from a path row.

        Args:
            record: SQLAlchemy UserLearningPath row
            total_days: Length of the curriculum
            template_title: Title to show alongside the path
            days_completed: Completed lessons, used to tell "on the last
                day" apart from "finished the last day"
        """
        finished = (
            days_completed >= total_days
            if days_completed is not None
            else record.streak_count >= total_days
        )
        return cls(
            template_id=record.template_id,
            template_title=template_title,
            current_day=record.current_day,
            total_days=total_days,
            streak_count=record.streak_count,
            last_lesson_date=record.last_lesson_date,
            is_finished=finished,
        )


class LearningPathListResponse(BaseModel):
    paths: list[LearningPathResponse]
    total: int


class CurriculumResponse(BaseModel):
    """A freshly generated curriculum and the path that follows it."""

    template: TemplateDetail
    path: LearningPathResponse


# ===========================================
# Tutor Session Models
# ===========================================


class TutorMessage(BaseModel):
    role: MessageRole
    content: str
    timestamp: dt.datetime


class UserProgress(BaseModel):
    """Snapshot of the learner's progress shown to the tutor."""

    previous_days_completed: int = Field(0, ge=0)
    current_day: int = Field(1, ge=1)
    streak_count: int = Field(0, ge=0)


class LessonProgressInfo(BaseModel):
    lesson_id: str
    day_number: int
    status: LessonStatus
    score: Optional[int] = None
    completed_at: Optional[dt.datetime] = None


class TutorOverviewResponse(BaseModel):
    """
    Everything the tutoring page needs before a session starts.

    Attributes:
        template: The curriculum
        current_lesson: The lesson for the path's current day
        progress: Days completed, current day and streak
        completed_lessons: Completed lessons, oldest first
        has_api_key: Whether the user can start a tutored session
    """

    template: TemplateResponse
    current_lesson: LessonResponse
    progress: UserProgress
    completed_lessons: list[LessonProgressInfo] = Field(default_factory=list)
    has_api_key: bool = False


class TutorSessionResponse(BaseModel):
    """State of a tutoring session."""

    id: str
    template_id: str
    lesson_id: str
    day_number: int
    conversation: list[TutorMessage] = Field(default_factory=list)
    questions_asked: int = 0
    completion_score: int = 0
    is_complete: bool = False
    started_at: dt.datetime
    ended_at: Optional[dt.datetime] = None

    @classmethod
    def from_db_record(cls, record: TutorSession) -> TutorSessionResponse:
        return cls(
            id=record.id,
            template_id=record.template_id,
            lesson_id=record.lesson_id,
            day_number=record.day_number,
            conversation=[TutorMessage(**message) for message in record.conversation or []],
            questions_asked=record.questions_asked,
            completion_score=record.completion_score,
            is_complete=record.is_complete,
            started_at=record.started_at,
            ended_at=record.ended_at,
        )


class TutorMessageRequest(StrictRequest):
    """
    A learner's message to the tutor.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    message: str = Field(..., min_length=1, max_length=10000)


class TutorReplyResponse(BaseModel):
    """
    Tutor's reply to a learner message.

    When the reply completes the lesson, `is_complete` is True and `path`
    carries the advanced learning path.
    """

    session_id: str
    reply: str
    is_complete: bool = False
    completion_score: int = 0
    questions_asked: int = 0
    path: Optional[LearningPathResponse] = None


class LessonCompletionResponse(BaseModel):
    """Result of completing a lesson."""

    session_id: str
    lesson_id: str
    day_number: int
    score: int
    time_spent: int = Field(0, description="Seconds spent in the session")
    path: LearningPathResponse
