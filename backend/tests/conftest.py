"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.
"""

import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
# This ensures POSTGRES_TEST_* variables are available
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try backend directory
    _backend_env = Path(__file__).parent.parent / ".env"
    if _backend_env.exists():
        load_dotenv(_backend_env)

# Settings are read when learnloop.config is first imported, which happens
# while test modules are collected. Rate limits would make API tests depend
# on call order.
os.environ["RATE_LIMITING_ENABLED"] = "false"


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    This ensures tests run with predictable configuration, overriding
    any values from .env files to ensure test isolation.
    """
    # Store original environment
    original_env = os.environ.copy()

    # Test database credentials come from POSTGRES_TEST_* env vars if set,
    # otherwise fall back to defaults for CI environments
    test_env = {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "RATE_LIMITING_ENABLED": "false",
        "DEBUG": "true",
    }
    os.environ.update(test_env)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Sample Data
# ============================================================================


@pytest.fixture
def user_id() -> str:
    """Id of the acting user."""
    return "11111111-2222-3333-4444-555555555555"


@pytest.fixture
def today() -> date:
    """A fixed calendar day so streak arithmetic is deterministic."""
    return date(2025, 3, 12)


@pytest.fixture
def now() -> datetime:
    """Current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


@pytest.fixture
def sample_lesson_content() -> dict[str, Any]:
    """lesson_content of a generated lesson."""
    return {
        "objectives": ["Explain what a closure is", "Write a simple decorator"],
        "key_concepts": ["closures", "first-class functions", "functools.wraps"],
        "practice_focus": "Write a timing decorator",
    }


@pytest.fixture
def sample_curriculum_payload() -> dict[str, Any]:
    """Parsed JSON of a well-formed 7-day curriculum response."""
    return {
        "title": "Python Decorators in 7 Days",
        "description": "From closures to class-based decorators.",
        "lessons": [
            {
                "day_number": day,
                "lesson_title": f"Day {day} topic",
                "objectives": [f"Objective {day}.1", f"Objective {day}.2"],
                "key_concepts": [f"Concept {day}"],
                "practice_focus": f"Practice {day}",
            }
            for day in range(1, 8)
        ],
    }


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Create a mock async database session for unit testing.

    `add` is synchronous on AsyncSession; everything else is awaited.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """Create a mock LLM client."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=("Test response", MagicMock()))
    return client


@pytest.fixture
def make_result():
    """
    Factory for mocks of execute() results.

    make_result(row) gives scalars().first() == row; make_result(rows=[...])
    gives scalars().all() == rows.
    """

    def _make(value: Any = None, rows: list | None = None) -> MagicMock:
        result = MagicMock()
        result.scalars.return_value.first.return_value = value
        if rows is None:
            rows = [] if value is None else [value]
        result.scalars.return_value.all.return_value = rows
        result.scalar_one.return_value = value
        result.rowcount = 1 if value else 0
        return result

    return _make
