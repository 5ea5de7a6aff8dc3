"""
Integration tests for the learning flow.

Covers streaks, API keys, onboarding and a tutor session completed by hand
against a real database. No LLM is called: without a stored key the tutor
answers with its fixed prompt to add one.

IMPORTANT: These tests use the TEST database only (via POSTGRES_TEST_* env vars).
"""

import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.models import ApiKey
from learnloop.db.models_learning import (
    LearningTemplate,
    Lesson,
    LessonProgress,
    UserLearningPath,
    UserStreak,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def user_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def headers(user_id: str) -> dict[str, str]:
    return {"X-User-ID": user_id}


@pytest_asyncio.fixture
async def template(clean_db: AsyncSession, user_id: str) -> LearningTemplate:
    """A 7-day template with a learning path for the user at day 1."""
    template = LearningTemplate(
        user_id=user_id,
        title="SQL in 7 Days",
        subject="SQL",
        difficulty_level="beginner",
        lessons=[
            Lesson(
                day_number=day,
                lesson_title=f"Day {day}",
                lesson_content={
                    "objectives": [f"Objective {day}"],
                    "key_concepts": [f"Concept {day}"],
                    "practice_focus": "Queries",
                },
            )
            for day in range(1, 8)
        ],
    )
    clean_db.add(template)
    await clean_db.flush()
    clean_db.add(UserLearningPath(user_id=user_id, template_id=template.id))
    await clean_db.commit()
    return template


class TestStreaks:
    async def test_activity_counts_once_per_day(self, async_test_client, clean_db, headers, user_id):
        first = await async_test_client.post("/api/streaks/activity", headers=headers)
        second = await async_test_client.post("/api/streaks/activity", headers=headers)

        assert first.status_code == 200
        assert first.json()["current_streak"] == 1
        assert second.json()["current_streak"] == 1
        assert second.json()["message_count"] == 2

        result = await clean_db.execute(select(UserStreak).where(UserStreak.user_id == user_id))
        assert len(result.scalars().all()) == 1

    async def test_history(self, async_test_client, headers):
        await async_test_client.post("/api/streaks/activity", headers=headers)

        response = await async_test_client.get("/api/streaks/history?days=7", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["days"]) == 7
        assert body["days"][-1]["level"] == 4
        assert body["total_active_days"] == 1


class TestApiKeys:
    async def test_save_list_delete(self, async_test_client, clean_db, headers, user_id):
        saved = await async_test_client.put(
            "/api/api-keys/openai",
            json={"api_key": "sk-test-abcdefghijklmnop"},
            headers=headers,
        )
        assert saved.status_code == 200
        assert saved.json()["masked_key"] == "sk-...mnop"

        stored = (
            await clean_db.execute(select(ApiKey).where(ApiKey.user_id == user_id))
        ).scalars().first()
        assert stored.encrypted_key != "sk-test-abcdefghijklmnop"

        listed = await async_test_client.get("/api/api-keys", headers=headers)
        assert listed.json()["total"] == 1

        deleted = await async_test_client.delete("/api/api-keys/openai", headers=headers)
        assert deleted.status_code == 200

        missing = await async_test_client.delete("/api/api-keys/openai", headers=headers)
        assert missing.status_code == 404

    async def test_chat_without_key(self, async_test_client, headers):
        response = await async_test_client.post(
            "/api/assistant/chat", json={"message": "Hello"}, headers=headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "api_key_required"


class TestOnboarding:
    async def test_profile_created_on_profile_step(self, async_test_client, headers):
        data = {
            "email": "Ada@Example.com",
            "password": "correct-horse",
            "full_name": "Ada",
            "role": "developer",
        }

        response = await async_test_client.post(
            "/api/onboarding/step",
            json={"step": "profile", "action": "next", "data": data},
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["step"] == "final"
        assert body["completed"] is True
        assert body["profile"]["email"] == "ada@example.com"

        profile = await async_test_client.get("/api/profile", headers=headers)
        assert profile.json()["full_name"] == "Ada"

    async def test_profile_missing(self, async_test_client, headers):
        response = await async_test_client.get("/api/profile", headers=headers)

        assert response.status_code == 404


class TestTutorFlow:
    async def test_manual_completion_advances_path(
        self, async_test_client, clean_db, headers, user_id, template
    ):
        started = await async_test_client.post(
            f"/api/learn/{template.id}/sessions", headers=headers
        )
        assert started.status_code == 200
        session = started.json()
        assert session["day_number"] == 1
        assert session["conversation"][0]["content"] == "Please add your OpenAI API key to continue."

        completed = await async_test_client.post(
            f"/api/learn/sessions/{session['id']}/complete", headers=headers
        )
        assert completed.status_code == 200
        body = completed.json()
        assert body["score"] == 100
        assert body["path"]["current_day"] == 2
        assert body["path"]["streak_count"] == 1

        again = await async_test_client.post(
            f"/api/learn/sessions/{session['id']}/complete", headers=headers
        )
        assert again.status_code == 409

        progress = (
            await clean_db.execute(
                select(LessonProgress).where(LessonProgress.user_id == user_id)
            )
        ).scalars().first()
        assert progress.status == "completed"
        assert progress.session_data["lesson_context"]["day_number"] == 1

        overview = await async_test_client.get(f"/api/learn/{template.id}", headers=headers)
        assert overview.status_code == 200
        assert overview.json()["current_lesson"]["day_number"] == 2
        assert overview.json()["has_api_key"] is False

    async def test_paths_listed(self, async_test_client, headers, template):
        response = await async_test_client.get("/api/learn/paths", headers=headers)

        assert response.status_code == 200
        assert response.json()["paths"][0]["template_id"] == template.id

    async def test_unknown_template(self, async_test_client, headers):
        response = await async_test_client.get(
            f"/api/learn/{uuid.uuid4()}", headers=headers
        )

        assert response.status_code == 404
