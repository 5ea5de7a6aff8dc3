"""
Curriculum Generator Service

Generates a 7-day curriculum for a subject with the user's OpenAI key and
stores it as a LearningTemplate with one Lesson per day, plus a learning
path for the requesting user starting at day 1.

Usage:
    from learnloop.services.learning.curriculum_generator import CurriculumGenerator

    generator = CurriculumGenerator(db, llm_client)
    curriculum = await generator.generate(
        user_id, subject="Python decorators", difficulty_level=DifficultyLevel.BEGINNER
    )
"""

import json
import logging
from typing import Any, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.config.settings import settings
from learnloop.db.models_learning import LearningTemplate, Lesson
from learnloop.enums.api import ApiKeyProvider, LLMOperation
from learnloop.enums.learning import DifficultyLevel
from learnloop.middleware.error_handling import ApiKeyRequiredError, LLMError
from learnloop.models.learning import CurriculumResponse, TemplateDetail
from learnloop.services.api_keys import ApiKeyService
from learnloop.services.learning.learning_path import LearningPathService, path_length
from learnloop.services.learning.tutor_prompts import CURRICULUM_GENERATION_PROMPT
from learnloop.services.llm.client import LLMClient, get_llm_client

logger = logging.getLogger(__name__)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_lessons(data: dict, days: int) -> list[dict]:
    """
    Normalize the LLM's lessons into Lesson column values.

    Lessons are taken in the order given and renumbered 1..days; anything
    past `days` is dropped.

    Raises:
        LLMError: If fewer than `days` usable lessons came back.
    """
    raw_lessons = data.get("lessons") if isinstance(data, dict) else None
    if not isinstance(raw_lessons, list):
        raise LLMError("Curriculum response has no lessons")

    lessons = []
    for raw in raw_lessons:
        if not isinstance(raw, dict) or not str(raw.get("lesson_title", "")).strip():
            continue
        lessons.append(
            {
                "day_number": len(lessons) + 1,
                "lesson_title": str(raw["lesson_title"]).strip(),
                "lesson_content": {
                    "objectives": _string_list(raw.get("objectives")),
                    "key_concepts": _string_list(raw.get("key_concepts")),
                    "practice_focus": str(raw.get("practice_focus") or "").strip(),
                },
            }
        )
        if len(lessons) == days:
            break

    if len(lessons) < days:
        raise LLMError(
            f"Curriculum response has {len(lessons)} usable lessons, expected {days}",
            details={"lessons": len(lessons), "expected": days},
        )
    return lessons


class CurriculumGenerator:
    """Service for generating and storing curricula."""

    def __init__(self, db: AsyncSession, llm_client: Optional[LLMClient] = None):
        """
        Initialize the curriculum generator.

        Args:
            db: Async database session for persisting the curriculum
            llm_client: LLM client (uses default if not provided)
        """
        self.db = db
        self.llm_client = llm_client or get_llm_client()
        self._api_keys = ApiKeyService(db)
        self._paths = LearningPathService(db)

    async def generate(
        self,
        user_id: str,
        subject: str,
        difficulty_level: Union[DifficultyLevel, str] = DifficultyLevel.BEGINNER,
        goal: Optional[str] = None,
    ) -> CurriculumResponse:
        """
        Generate, store and start a curriculum.

        Args:
            user_id: Requesting user; the call uses their OpenAI key.
            subject: What to learn.
            difficulty_level: beginner, intermediate or advanced.
            goal: Optional learner goal to steer the lessons.

        Returns:
            CurriculumResponse with the template, its lessons and the new path.

        Raises:
            ApiKeyRequiredError: If the user has no OpenAI key.
            LLMError: If the LLM call fails or returns too few lessons.
        """
        difficulty = DifficultyLevel(difficulty_level)
        days = path_length(None)

        api_key = await self._api_keys.get_decoded_key(user_id, ApiKeyProvider.OPENAI)
        if not api_key:
            raise ApiKeyRequiredError(
                "Please add your OpenAI API key to generate a curriculum."
            )

        prompt = CURRICULUM_GENERATION_PROMPT.format(
            days=days,
            subject=subject,
            difficulty_level=difficulty.value,
            goal=goal or "General understanding of the subject",
        )

        try:
            data, _ = await self.llm_client.complete(
                operation=LLMOperation.CURRICULUM_GENERATION,
                messages=[{"role": "user", "content": prompt}],
                api_key=api_key,
                temperature=settings.CURRICULUM_LLM_TEMPERATURE,
                json_mode=True,
                user_id=user_id,
            )
        except json.JSONDecodeError as e:
            raise LLMError("Curriculum response was not valid JSON") from e
        except Exception as e:
            logger.error(f"Curriculum generation failed for '{subject}': {e}")
            raise LLMError(f"Curriculum generation failed: {e}") from e

        lessons = parse_lessons(data, days)

        template = LearningTemplate(
            user_id=user_id,
            title=str(data.get("title") or f"{days}-Day {subject}").strip(),
            description=str(data.get("description") or "").strip() or None,
            subject=subject,
            difficulty_level=difficulty.value,
            total_lessons=days,
            estimated_days=days,
            lessons=[Lesson(**lesson) for lesson in lessons],
        )
        self.db.add(template)
        await self.db.flush()

        path = await self._paths.create_path(user_id, template.id)

        logger.info(
            f"Generated curriculum '{template.title}' ({template.id}) for user {user_id}"
        )

        return CurriculumResponse(
            template=TemplateDetail.from_db_record(template),
            path=await self._paths.path_response(path, template),
        )
