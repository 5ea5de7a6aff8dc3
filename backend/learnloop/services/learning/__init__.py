"""
Learning System Services

Streaks, 7-day learning paths, curriculum generation and the AI tutor.

Modules:
- streak_tracking: Daily activity streak bookkeeping
- learning_path: Day advancement through a 7-day curriculum
- curriculum_generator: LLM-powered curriculum generation
- tutor_prompts: Tutor and curriculum prompts
- tutor_service: AI tutoring sessions

Usage:
    from learnloop.services.learning import (
        StreakTrackingService,
        LearningPathService,
        CurriculumGenerator,
        TutorService,
    )
"""

from learnloop.services.learning.streak_tracking import (
    StreakTrackingService,
    StreakUpdate,
    calculate_activity_level,
    compute_streak_update,
)
from learnloop.services.learning.learning_path import (
    LearningPathAdvance,
    LearningPathService,
    advance_learning_path,
)
from learnloop.services.learning.curriculum_generator import CurriculumGenerator
from learnloop.services.learning.tutor_service import TutorService

__all__ = [
    # Streaks
    "StreakTrackingService",
    "StreakUpdate",
    "calculate_activity_level",
    "compute_streak_update",
    # Learning paths
    "LearningPathAdvance",
    "LearningPathService",
    "advance_learning_path",
    # Curriculum and tutor
    "CurriculumGenerator",
    "TutorService",
]
