"""
SQLAlchemy Database Models for the Learning System

These models support daily activity streaks, generated 7-day curricula
and AI tutoring sessions.

Tables:
- user_streaks: One row per (user, calendar day) with message count and streak
- learning_templates: Generated curricula (title, subject, difficulty)
- lessons: The daily lessons of a template
- user_learning_paths: A user's progress pointer through a template
- lesson_progress: Completion records with the saved tutoring session
- tutor_sessions: In-flight tutoring conversations

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: learnloop/models/learning.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnloop.db.base import Base
from learnloop.enums.learning import LessonStatus


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ===========================================
# Daily Activity Streaks
# ===========================================


class UserStreak(Base):
    """
    Daily activity record for a user.

    Created on the user's first tracked action of a calendar day and
    incremented on each subsequent action that day. Never deleted.

    Attributes:
        id: Primary key.
        user_id: Owning user.
        date: Calendar day (UTC), no time component.
        message_count: Qualifying actions on this day.
        current_streak: Consecutive-day streak as of this day.
    """

    __tablename__ = "user_streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_user_streaks_user_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)

    message_count: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


# ===========================================
# Curricula
# ===========================================


class LearningTemplate(Base):
    """
    A generated curriculum.

    Attributes:
        id: UUID string, used in URLs.
        user_id: User the curriculum was generated for.
        title: Curriculum title.
        description: One-paragraph description.
        subject: Subject the user asked for.
        difficulty_level: beginner, intermediate or advanced.
        total_lessons: Number of lessons (always the path length).
        estimated_days: Days needed at one lesson per day.
        lessons: Lessons ordered by day_number.
    """

    __tablename__ = "learning_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)

    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[Optional[str]] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(String(200))
    difficulty_level: Mapped[str] = mapped_column(String(50))
    total_lessons: Mapped[int] = mapped_column(Integer, default=7)
    estimated_days: Mapped[int] = mapped_column(Integer, default=7)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    lessons: Mapped[List["Lesson"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="Lesson.day_number",
    )


class Lesson(Base):
    """
    One day of a curriculum.

    Attributes:
        id: UUID string.
        template_id: Parent template.
        day_number: 1-based day within the template.
        lesson_title: Title shown to the learner.
        lesson_content: {"objectives": [...], "key_concepts": [...],
            "practice_focus": "..."}
    """

    __tablename__ = "lessons"
    __table_args__ = (
        UniqueConstraint("template_id", "day_number", name="uq_lessons_template_day"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("learning_templates.id", ondelete="CASCADE"), index=True
    )
    day_number: Mapped[int] = mapped_column(Integer)
    lesson_title: Mapped[str] = mapped_column(String(300))
    lesson_content: Mapped[dict] = mapped_column(JSONB, default=dict)

    template: Mapped["LearningTemplate"] = relationship(back_populates="lessons")


class UserLearningPath(Base):
    """
    A user's progress pointer through a curriculum.

    Advances by at most one day per completed session and never past the
    last day. streak_count counts completed sessions; it has no decay for
    skipped days.

    Attributes:
        id: Primary key.
        user_id: Owning user.
        template_id: Curriculum being followed.
        current_day: Day to study next (1..7).
        streak_count: Completed lessons on this path.
        last_lesson_date: Calendar day of the most recent completion.
    """

    __tablename__ = "user_learning_paths"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "template_id", name="uq_user_learning_paths_user_template"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("learning_templates.id", ondelete="CASCADE")
    )
    current_day: Mapped[int] = mapped_column(Integer, default=1)
    streak_count: Mapped[int] = mapped_column(Integer, default=0)
    last_lesson_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class LessonProgress(Base):
    """
    Completion record for a lesson.

    session_data keeps the full tutoring session so later sessions can build
    on it: conversation, lesson_context, session_stats and
    user_progress_snapshot.
    """

    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_progress_user_lesson"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    lesson_id: Mapped[str] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE")
    )
    template_id: Mapped[str] = mapped_column(
        ForeignKey("learning_templates.id", ondelete="CASCADE"), index=True
    )

    status: Mapped[str] = mapped_column(
        String(20), default=LessonStatus.NOT_STARTED.value
    )
    score: Mapped[Optional[int]] = mapped_column(Integer)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # Seconds
    session_data: Mapped[Optional[dict]] = mapped_column(JSONB)

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_attempted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )


class TutorSession(Base):
    """
    An AI tutoring session for one lesson.

    Holds the state the tutoring page keeps between messages so each request
    can pick up where the previous one left off.

    Attributes:
        id: UUID string, used in URLs.
        conversation: List of {"role", "content", "timestamp"} dicts.
        questions_asked: Tutor turns that did not complete the lesson.
        completion_score: Score recorded on completion (0 until then).
        is_complete: Whether the lesson was completed in this session.
    """

    __tablename__ = "tutor_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    template_id: Mapped[str] = mapped_column(
        ForeignKey("learning_templates.id", ondelete="CASCADE")
    )
    lesson_id: Mapped[str] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"))
    day_number: Mapped[int] = mapped_column(Integer)

    conversation: Mapped[list] = mapped_column(JSONB, default=list)
    questions_asked: Mapped[int] = mapped_column(Integer, default=0)
    completion_score: Mapped[int] = mapped_column(Integer, default=0)
    is_complete: Mapped[bool] = mapped_column(Boolean, default=False)

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
