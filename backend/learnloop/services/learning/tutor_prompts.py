"""
Tutor Prompts

LLM prompts for the AI tutor and for curriculum generation.

The tutor prompt carries the curriculum and lesson context, a digest of
the most recent completed sessions and the tutoring guidelines. The
guidelines tell the model to open its final turn with LESSON_COMPLETE:
once enough learning has happened; TutorService watches for that marker.
"""

from typing import Any, Optional

from learnloop.config import settings

LESSON_COMPLETE_MARKER = "LESSON_COMPLETE:"


# =============================================================================
# Tutor System Prompt
# =============================================================================

TUTOR_SYSTEM_PROMPT = """You are an expert AI tutor conducting a personalized learning session.

CONTEXT:
- Template: {template_title} ({subject})
- Today is Day {day_number}: {lesson_title}
- User has completed {previous_days_completed} previous days
- Current streak: {streak_count} days
- Difficulty level: {difficulty_level}

{previous_sessions_context}

TODAY'S LESSON OBJECTIVES:
{objectives}

KEY CONCEPTS TO COVER:
{key_concepts}

PRACTICE FOCUS: {practice_focus}

TUTORING GUIDELINES:
1. {opening_guideline}
2. Ask thoughtful questions to check understanding
3. Provide explanations when needed
4. Give practical examples and exercises
5. Adapt difficulty based on responses
6. Build on previous days' learning and reference past sessions
7. Keep responses conversational but educational
8. After 8-12 meaningful exchanges, naturally conclude the lesson

IMPORTANT: Track the conversation. After substantial learning has occurred \
(8-12 exchanges), respond with "{marker}" followed by a summary and encouragement."""

WELCOME_GUIDELINE = "Start with an encouraging welcome and outline today's goals"
CONTINUE_GUIDELINE = "Continue the interactive lesson"

PREVIOUS_SESSIONS_BLOCK = """PREVIOUS LEARNING SESSIONS:
{sessions}

BUILD ON THIS: Reference previous concepts and adapt your teaching based on \
the user's demonstrated understanding and learning patterns."""

SESSION_DIGEST = """Day {day_number} ({lesson_title}):
Key concepts covered: {key_concepts}
Recent conversation:
{recent_messages}
Session score: {score}%"""


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_session_digest(session_data: dict[str, Any]) -> str:
    """
    Summarize one saved session for the tutor prompt.

    Each of the trailing messages is cut to TUTOR_CONTEXT_SNIPPET_CHARS
    characters and followed by "...".
    """
    lesson_context = session_data.get("lesson_context") or {}
    stats = session_data.get("session_stats") or {}
    conversation = session_data.get("conversation") or []
    snippet_chars = settings.TUTOR_CONTEXT_SNIPPET_CHARS

    recent = conversation[-settings.TUTOR_CONTEXT_MESSAGES :]
    recent_messages = "\n".join(
        f"{msg.get('role', '')}: {(msg.get('content') or '')[:snippet_chars]}..."
        for msg in recent
    )
    return SESSION_DIGEST.format(
        day_number=lesson_context.get("day_number", "?"),
        lesson_title=lesson_context.get("lesson_title", ""),
        key_concepts=", ".join(lesson_context.get("key_concepts") or []),
        recent_messages=recent_messages,
        score=stats.get("completion_score", 0),
    )


def build_previous_sessions_context(session_data_list: list[Optional[dict]]) -> str:
    """
    Build the previous-sessions block from saved session data, oldest first.

    Only the last TUTOR_CONTEXT_SESSIONS sessions that have a conversation
    are used. Returns an empty string if there are none.
    """
    usable = [data for data in session_data_list if data and data.get("conversation")]
    recent = usable[-settings.TUTOR_CONTEXT_SESSIONS :] if usable else []
    if not recent:
        return ""

    sessions = "\n---\n".join(format_session_digest(data) for data in recent)
    return PREVIOUS_SESSIONS_BLOCK.format(sessions=sessions)


def build_tutor_system_prompt(
    template: Any,
    lesson: Any,
    previous_days_completed: int,
    streak_count: int,
    previous_sessions: list[Optional[dict]],
    is_welcome: bool = False,
) -> str:
    """
    Build the tutor's system prompt.

    Args:
        template: LearningTemplate (title, subject, difficulty_level)
        lesson: Lesson (day_number, lesson_title, lesson_content)
        previous_days_completed: Days completed before this one
        streak_count: Completed sessions on the learning path
        previous_sessions: session_data of completed lessons, oldest first
        is_welcome: True for the session's opening message

    Returns:
        The system prompt text.
    """
    content = lesson.lesson_content or {}
    return TUTOR_SYSTEM_PROMPT.format(
        template_title=template.title,
        subject=template.subject,
        day_number=lesson.day_number,
        lesson_title=lesson.lesson_title,
        previous_days_completed=previous_days_completed,
        streak_count=streak_count,
        difficulty_level=template.difficulty_level,
        previous_sessions_context=build_previous_sessions_context(previous_sessions),
        objectives=_bullets(content.get("objectives") or []),
        key_concepts=_bullets(content.get("key_concepts") or []),
        practice_focus=content.get("practice_focus", ""),
        opening_guideline=WELCOME_GUIDELINE if is_welcome else CONTINUE_GUIDELINE,
        marker=LESSON_COMPLETE_MARKER,
    )


def split_completion_marker(reply: str) -> tuple[bool, str]:
    """
    Detect and strip the lesson-complete marker.

    Returns:
        (is_complete, text) where text has the marker removed and is
        stripped when the marker was present.

    Example:
        >>> split_completion_marker("LESSON_COMPLETE: Great work today!")
        (True, 'Great work today!')
    """
    if reply.startswith(LESSON_COMPLETE_MARKER):
        return True, reply.replace(LESSON_COMPLETE_MARKER, "", 1).strip()
    return False, reply


# =============================================================================
# Curriculum Generation
# =============================================================================

CURRICULUM_GENERATION_PROMPT = """Design a {days}-day learning curriculum.

SUBJECT: {subject}
DIFFICULTY: {difficulty_level}
LEARNER GOAL: {goal}

Each day is one focused tutoring session of about 20 minutes. Days should
build on each other, starting from the fundamentals the difficulty level
assumes and ending with a practical capstone.

Return a JSON object with:
{{
    "title": "Curriculum title",
    "description": "One paragraph describing what the learner will achieve",
    "lessons": [
        {{
            "day_number": 1,
            "lesson_title": "Title of the day's lesson",
            "objectives": ["objective 1", "objective 2", "objective 3"],
            "key_concepts": ["concept 1", "concept 2", "concept 3"],
            "practice_focus": "What the learner practices in this session"
        }}
    ]
}}

Return exactly {days} lessons, numbered 1 to {days}."""
