"""
Learning API Router

Curricula, learning paths and AI tutoring sessions.

Endpoints:
    POST /api/learn/curriculum                       - Generate a 7-day curriculum
    GET  /api/learn/paths                            - List learning paths
    GET  /api/learn/paths/{template_id}              - Get one learning path
    POST /api/learn/sessions/{session_id}/messages   - Send a tutor message
    POST /api/learn/sessions/{session_id}/complete   - Mark the day complete
    GET  /api/learn/{template_id}                    - Tutor overview for the current day
    POST /api/learn/{template_id}/sessions           - Start a tutor session

Fixed paths are registered before the /{template_id} routes.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.base import get_db
from learnloop.dependencies import get_current_user_id
from learnloop.middleware.error_handling import handle_endpoint_errors
from learnloop.middleware.rate_limit import limit_llm
from learnloop.models.learning import (
    CurriculumRequest,
    CurriculumResponse,
    LearningPathListResponse,
    LearningPathResponse,
    LessonCompletionResponse,
    TutorMessageRequest,
    TutorOverviewResponse,
    TutorReplyResponse,
    TutorSessionResponse,
)
from learnloop.services.learning.curriculum_generator import CurriculumGenerator
from learnloop.services.learning.learning_path import LearningPathService
from learnloop.services.learning.tutor_service import TutorService
from learnloop.services.llm import get_llm_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/learn", tags=["learning"])


# =============================================================================
# Dependency Injection
# =============================================================================


async def get_curriculum_generator(
    db: AsyncSession = Depends(get_db),
) -> CurriculumGenerator:
    return CurriculumGenerator(db, get_llm_client())


async def get_learning_path_service(
    db: AsyncSession = Depends(get_db),
) -> LearningPathService:
    return LearningPathService(db)


async def get_tutor_service(db: AsyncSession = Depends(get_db)) -> TutorService:
    return TutorService(db, get_llm_client())


# =============================================================================
# Curriculum Endpoints
# =============================================================================


@router.post("/curriculum", response_model=CurriculumResponse)
@limit_llm
@handle_endpoint_errors("Curriculum generation")
async def generate_curriculum(
    request: Request,
    curriculum_request: CurriculumRequest,
    user_id: str = Depends(get_current_user_id),
    generator: CurriculumGenerator = Depends(get_curriculum_generator),
) -> CurriculumResponse:
    """
    Generate a 7-day curriculum and start a learning path on it.

    Raises:
        HTTPException 400: If the user has no OpenAI key.
        HTTPException 502: If the LLM fails or returns an unusable curriculum.
    """
    return await generator.generate(
        user_id,
        subject=curriculum_request.subject,
        difficulty_level=curriculum_request.difficulty_level,
        goal=curriculum_request.goal,
    )


# =============================================================================
# Learning Path Endpoints
# =============================================================================


@router.get("/paths", response_model=LearningPathListResponse)
@handle_endpoint_errors("List learning paths")
async def list_paths(
    user_id: str = Depends(get_current_user_id),
    service: LearningPathService = Depends(get_learning_path_service),
) -> LearningPathListResponse:
    return await service.list_paths(user_id)


@router.get("/paths/{template_id}", response_model=LearningPathResponse)
@handle_endpoint_errors("Get learning path")
async def get_path(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    service: LearningPathService = Depends(get_learning_path_service),
) -> LearningPathResponse:
    """
    Raises:
        HTTPException 404: If the user has no path on this template.
    """
    return await service.get_path(user_id, template_id)


# =============================================================================
# Tutor Session Endpoints
# =============================================================================


@router.post("/sessions/{session_id}/messages", response_model=TutorReplyResponse)
@limit_llm
@handle_endpoint_errors("Tutor message")
async def send_tutor_message(
    request: Request,
    session_id: str,
    message_request: TutorMessageRequest,
    user_id: str = Depends(get_current_user_id),
    service: TutorService = Depends(get_tutor_service),
) -> TutorReplyResponse:
    """
    Send a message to the tutor.

    When the tutor concludes the lesson the reply has is_complete set and
    carries the advanced learning path.

    Raises:
        HTTPException 404: If the session does not exist.
        HTTPException 409: If the session is already complete.
    """
    return await service.send_message(user_id, session_id, message_request.message)


@router.post(
    "/sessions/{session_id}/complete", response_model=LessonCompletionResponse
)
@handle_endpoint_errors("Complete lesson")
async def complete_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TutorService = Depends(get_tutor_service),
) -> LessonCompletionResponse:
    """
    Mark the session's day complete and advance the learning path.

    Raises:
        HTTPException 404: If the session does not exist.
        HTTPException 409: If the session is already complete.
    """
    return await service.mark_day_complete(user_id, session_id)


# =============================================================================
# Template Endpoints
# =============================================================================


@router.get("/{template_id}", response_model=TutorOverviewResponse)
@handle_endpoint_errors("Get tutor overview")
async def get_overview(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TutorService = Depends(get_tutor_service),
) -> TutorOverviewResponse:
    """
    Today's lesson, progress on the path and completed lessons.

    Raises:
        HTTPException 404: If the template or the user's path does not exist.
    """
    return await service.get_overview(user_id, template_id)


@router.post("/{template_id}/sessions", response_model=TutorSessionResponse)
@limit_llm
@handle_endpoint_errors("Start tutor session")
async def start_session(
    request: Request,
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    service: TutorService = Depends(get_tutor_service),
) -> TutorSessionResponse:
    """
    Start a tutoring session for the path's current day.

    Raises:
        HTTPException 404: If the template or the user's path does not exist.
    """
    return await service.start_session(user_id, template_id)
