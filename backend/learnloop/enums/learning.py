"""
Learning System Enums

Defines enums for chat roles, lesson progress, curriculum difficulty
and the onboarding wizard.
"""

from enum import Enum


class MessageRole(str, Enum):
    """
    Role of a message in a chat or tutoring conversation.

    Values map directly onto the chat-completion API roles.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LessonStatus(str, Enum):
    """
    Progress state of a single lesson for a user.

    State transitions:
    - NOT_STARTED → IN_PROGRESS (tutor session started)
    - IN_PROGRESS → COMPLETED (lesson completed by tutor or manually)
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class DifficultyLevel(str, Enum):
    """Difficulty of a generated learning template."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class OnboardingStep(str, Enum):
    """
    Steps of the onboarding wizard, in order.

    Step order is the declaration order; see OnboardingWizard.
    """

    WELCOME = "welcome"
    ACCOUNT = "account"
    PROFILE = "profile"
    FINAL = "final"

    @property
    def title(self) -> str:
        return {
            OnboardingStep.WELCOME: "Welcome",
            OnboardingStep.ACCOUNT: "Create Account",
            OnboardingStep.PROFILE: "Profile Setup",
            OnboardingStep.FINAL: "You're In",
        }[self]


class OnboardingAction(str, Enum):
    """Direction the wizard should move in."""

    NEXT = "next"
    BACK = "back"


class ProfileRole(str, Enum):
    """Roles offered on the profile step."""

    DEVELOPER = "developer"
    DESIGNER = "designer"
    FOUNDER = "founder"
    RESEARCHER = "researcher"
    STUDENT = "student"
    OTHER = "other"
