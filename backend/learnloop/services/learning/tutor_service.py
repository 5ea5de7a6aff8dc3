"""
AI Tutor Service

Runs tutoring sessions for the current day of a user's learning path.

Session lifecycle:
    start_session  → AI welcome message, lesson marked in progress
    send_message   → tutor reply; a reply starting with LESSON_COMPLETE:
                     completes the lesson with the automatic score
    mark_day_complete → manual completion with the full score

Completing a lesson saves the whole session into LessonProgress.session_data
(later sessions quote it back to the tutor) and advances the learning path
by one day. A session completes at most once.

Usage:
    service = TutorService(db, llm_client)
    session = await service.start_session(user_id, template_id)
    reply = await service.send_message(user_id, session.id, "What is a closure?")
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.config.settings import settings
from learnloop.db.models_learning import (
    LearningTemplate,
    Lesson,
    LessonProgress,
    TutorSession,
    UserLearningPath,
)
from learnloop.enums.api import ApiKeyProvider, LLMOperation
from learnloop.enums.learning import LessonStatus, MessageRole
from learnloop.middleware.error_handling import ConflictError, NotFoundError
from learnloop.models.learning import (
    LessonCompletionResponse,
    LessonProgressInfo,
    LessonResponse,
    TemplateResponse,
    TutorOverviewResponse,
    TutorReplyResponse,
    TutorSessionResponse,
    UserProgress,
)
from learnloop.services.api_keys import ApiKeyService
from learnloop.services.learning.learning_path import LearningPathService
from learnloop.services.learning.tutor_prompts import (
    build_tutor_system_prompt,
    split_completion_marker,
)
from learnloop.services.llm.client import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

MISSING_KEY_REPLY = "Please add your OpenAI API key to continue."
CONNECTION_ERROR_REPLY = "I'm having trouble connecting right now. Please try again."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _message(role: MessageRole, content: str) -> dict:
    """A conversation entry as stored in TutorSession.conversation."""
    return {"role": role.value, "content": content, "timestamp": _utc_now().isoformat()}


class TutorService:
    """
    Service for AI tutoring sessions.

    Attributes:
        db: Async database session.
        llm_client: LLM client used with the user's own OpenAI key.
    """

    def __init__(self, db: AsyncSession, llm_client: Optional[LLMClient] = None):
        self.db = db
        self.llm_client = llm_client or get_llm_client()
        self._api_keys = ApiKeyService(db)
        self._paths = LearningPathService(db)

    # =========================================================================
    # Loading
    # =========================================================================

    async def _get_template(self, template_id: str) -> LearningTemplate:
        template = await self.db.get(LearningTemplate, template_id)
        if template is None:
            raise NotFoundError(f"Learning template {template_id} not found")
        return template

    async def _get_path(self, user_id: str, template_id: str) -> UserLearningPath:
        path = await self._paths.get_path_record(user_id, template_id)
        if path is None:
            raise NotFoundError(f"Learning path for template {template_id} not found")
        return path

    async def _get_lesson(self, template_id: str, day_number: int) -> Lesson:
        result = await self.db.execute(
            select(Lesson).where(
                Lesson.template_id == template_id,
                Lesson.day_number == day_number,
            )
        )
        lesson = result.scalars().first()
        if lesson is None:
            raise NotFoundError(f"No lesson for day {day_number} of template {template_id}")
        return lesson

    async def _get_session(self, user_id: str, session_id: str) -> TutorSession:
        session = await self.db.get(TutorSession, session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(f"Tutor session {session_id} not found")
        return session

    async def _get_progress(self, user_id: str, lesson_id: str) -> Optional[LessonProgress]:
        result = await self.db.execute(
            select(LessonProgress).where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id == lesson_id,
            )
        )
        return result.scalars().first()

    async def _completed_progress(
        self, user_id: str, template_id: str
    ) -> list[LessonProgress]:
        """Completed lessons of a template, oldest completion first."""
        result = await self.db.execute(
            select(LessonProgress)
            .where(
                LessonProgress.user_id == user_id,
                LessonProgress.template_id == template_id,
                LessonProgress.status == LessonStatus.COMPLETED.value,
            )
            .order_by(LessonProgress.completed_at)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Tutor Replies
    # =========================================================================

    async def _get_ai_response(
        self,
        user_id: str,
        template: LearningTemplate,
        lesson: Lesson,
        path: UserLearningPath,
        conversation: list[dict],
        is_welcome: bool = False,
    ) -> str:
        """
        Get the tutor's next turn.

        Never raises for a missing key or a failed call; the learner sees a
        short explanation as the tutor's reply instead.
        """
        api_key = await self._api_keys.get_decoded_key(user_id, ApiKeyProvider.OPENAI)
        if not api_key:
            return MISSING_KEY_REPLY

        previous = await self._completed_progress(user_id, template.id)
        system_prompt = build_tutor_system_prompt(
            template=template,
            lesson=lesson,
            previous_days_completed=path.current_day - 1,
            streak_count=path.streak_count or 0,
            previous_sessions=[progress.session_data for progress in previous],
            is_welcome=is_welcome,
        )
        messages = [{"role": MessageRole.SYSTEM.value, "content": system_prompt}]
        messages.extend(
            {"role": msg["role"], "content": msg["content"]} for msg in conversation
        )

        try:
            reply, _ = await self.llm_client.complete(
                operation=LLMOperation.TUTOR_RESPONSE,
                messages=messages,
                api_key=api_key,
                user_id=user_id,
            )
        except Exception as e:
            logger.error(f"Tutor completion failed for user {user_id}: {e}")
            return CONNECTION_ERROR_REPLY

        return str(reply) if reply else CONNECTION_ERROR_REPLY

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_overview(self, user_id: str, template_id: str) -> TutorOverviewResponse:
        """
        Everything needed to show today's lesson.

        Raises:
            NotFoundError: If the template, the user's path or the day's
                lesson does not exist.
        """
        template = await self._get_template(template_id)
        path = await self._get_path(user_id, template_id)
        lesson = await self._get_lesson(template_id, path.current_day)
        completed = await self._completed_progress(user_id, template_id)

        lesson_days = {}
        if completed:
            result = await self.db.execute(
                select(Lesson.id, Lesson.day_number).where(
                    Lesson.id.in_([progress.lesson_id for progress in completed])
                )
            )
            lesson_days = dict(result.all())

        has_key = (
            await self._api_keys.get_decoded_key(user_id, ApiKeyProvider.OPENAI)
        ) is not None

        return TutorOverviewResponse(
            template=TemplateResponse.model_validate(template),
            current_lesson=LessonResponse.model_validate(lesson),
            progress=UserProgress(
                previous_days_completed=path.current_day - 1,
                current_day=path.current_day,
                streak_count=path.streak_count or 0,
            ),
            completed_lessons=[
                LessonProgressInfo(
                    lesson_id=progress.lesson_id,
                    day_number=lesson_days.get(progress.lesson_id, 0),
                    status=LessonStatus(progress.status),
                    score=progress.score,
                    completed_at=progress.completed_at,
                )
                for progress in completed
            ],
            has_api_key=has_key,
        )

    async def start_session(self, user_id: str, template_id: str) -> TutorSessionResponse:
        """
        Start a tutoring session for the path's current day.

        The tutor opens with a welcome that outlines the day's goals. The
        lesson is marked in progress unless it was already completed.
        """
        template = await self._get_template(template_id)
        path = await self._get_path(user_id, template_id)
        lesson = await self._get_lesson(template_id, path.current_day)

        welcome = await self._get_ai_response(
            user_id, template, lesson, path, conversation=[], is_welcome=True
        )

        session = TutorSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            template_id=template_id,
            lesson_id=lesson.id,
            day_number=lesson.day_number,
            conversation=[_message(MessageRole.ASSISTANT, welcome)],
            questions_asked=0,
            completion_score=0,
            is_complete=False,
            started_at=_utc_now(),
        )
        self.db.add(session)

        progress = await self._get_progress(user_id, lesson.id)
        if progress is None:
            progress = LessonProgress(
                user_id=user_id,
                lesson_id=lesson.id,
                template_id=template_id,
                status=LessonStatus.IN_PROGRESS.value,
                attempts=0,
                time_spent=0,
            )
            self.db.add(progress)
        elif progress.status != LessonStatus.COMPLETED.value:
            progress.status = LessonStatus.IN_PROGRESS.value
        progress.attempts = (progress.attempts or 0) + 1
        progress.last_attempted_at = _utc_now()

        await self.db.flush()
        logger.info(
            f"Started tutor session {session.id} for user {user_id}, "
            f"template {template_id} day {lesson.day_number}"
        )
        return TutorSessionResponse.from_db_record(session)

    async def send_message(
        self, user_id: str, session_id: str, message: str
    ) -> TutorReplyResponse:
        """
        Send a learner message and get the tutor's reply.

        Raises:
            NotFoundError: If the session does not exist for this user.
            ConflictError: If the session is already complete.
        """
        session = await self._get_session(user_id, session_id)
        if session.is_complete:
            raise ConflictError("This lesson session is already complete")

        template = await self._get_template(session.template_id)
        path = await self._get_path(user_id, session.template_id)
        lesson = await self.db.get(Lesson, session.lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson {session.lesson_id} not found")

        conversation = [*(session.conversation or []), _message(MessageRole.USER, message)]
        reply = await self._get_ai_response(user_id, template, lesson, path, conversation)

        is_complete, text = split_completion_marker(reply)
        session.conversation = [*conversation, _message(MessageRole.ASSISTANT, text)]

        if not is_complete:
            session.questions_asked = (session.questions_asked or 0) + 1
            await self.db.flush()
            return TutorReplyResponse(
                session_id=session.id,
                reply=text,
                questions_asked=session.questions_asked,
            )

        completion = await self._complete_lesson(
            session, lesson, path, settings.TUTOR_AUTO_COMPLETION_SCORE
        )
        return TutorReplyResponse(
            session_id=session.id,
            reply=text,
            is_complete=True,
            completion_score=completion.score,
            questions_asked=session.questions_asked,
            path=completion.path,
        )

    async def mark_day_complete(
        self, user_id: str, session_id: str
    ) -> LessonCompletionResponse:
        """
        Complete the session's lesson manually with the full score.

        Raises:
            NotFoundError: If the session does not exist for this user.
            ConflictError: If the session is already complete.
        """
        session = await self._get_session(user_id, session_id)
        if session.is_complete:
            raise ConflictError("This lesson session is already complete")

        path = await self._get_path(user_id, session.template_id)
        lesson = await self.db.get(Lesson, session.lesson_id)
        if lesson is None:
            raise NotFoundError(f"Lesson {session.lesson_id} not found")

        return await self._complete_lesson(
            session, lesson, path, settings.TUTOR_MANUAL_COMPLETION_SCORE
        )

    async def _complete_lesson(
        self,
        session: TutorSession,
        lesson: Lesson,
        path: UserLearningPath,
        score: int,
    ) -> LessonCompletionResponse:
        """
        Save the session into LessonProgress and advance the learning path.

        The progress snapshot is taken before the path advances.
        """
        ended_at = _utc_now()
        started_at = session.started_at or ended_at
        time_spent = max(0, round((ended_at - started_at).total_seconds()))
        content = lesson.lesson_content or {}

        session.is_complete = True
        session.completion_score = score
        session.ended_at = ended_at

        session_data = {
            "conversation": list(session.conversation or []),
            "lesson_context": {
                "day_number": lesson.day_number,
                "lesson_title": lesson.lesson_title,
                "objectives": content.get("objectives", []),
                "key_concepts": content.get("key_concepts", []),
                "practice_focus": content.get("practice_focus", ""),
            },
            "session_stats": {
                "questions_asked": session.questions_asked or 0,
                "time_spent": time_spent,
                "completion_score": score,
                "session_start": started_at.isoformat(),
                "session_end": ended_at.isoformat(),
            },
            "user_progress_snapshot": {
                "previous_days_completed": path.current_day - 1,
                "current_day": path.current_day,
                "streak_count": path.streak_count or 0,
            },
        }

        progress = await self._get_progress(session.user_id, lesson.id)
        if progress is None:
            progress = LessonProgress(
                user_id=session.user_id,
                lesson_id=lesson.id,
                template_id=session.template_id,
                attempts=1,
            )
            self.db.add(progress)
        progress.status = LessonStatus.COMPLETED.value
        progress.score = score
        progress.attempts = max(progress.attempts or 0, 1)
        progress.time_spent = time_spent
        progress.session_data = session_data
        progress.completed_at = ended_at
        progress.last_attempted_at = ended_at
        await self.db.flush()

        path = await self._paths.complete_day(
            session.user_id, session.template_id, today=ended_at.date()
        )

        logger.info(
            f"Completed day {lesson.day_number} of template {session.template_id} "
            f"for user {session.user_id} (score {score}, {time_spent}s)"
        )

        return LessonCompletionResponse(
            session_id=session.id,
            lesson_id=lesson.id,
            day_number=lesson.day_number,
            score=score,
            time_spent=time_spent,
            path=await self._paths.path_response(path),
        )
