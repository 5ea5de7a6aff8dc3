"""
Integration Test Fixtures

Provides fixtures for integration tests that require a running PostgreSQL.
These fixtures set up real database connections and clean up after tests.

IMPORTANT: All integration tests use the TEST database only (via POSTGRES_TEST_* env vars).
The async_test_client fixture overrides get_db so the production database is never touched.
A safety check fixture (verify_test_database) runs at session start to fail fast if
production credentials are detected.

Note: learnloop.main imports are kept inside fixtures because they require
environment variables that are set up by the session-scoped fixtures
in the parent conftest.py.
"""

import os
from pathlib import Path
from typing import AsyncGenerator
from urllib.parse import quote_plus

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Load .env file FIRST so POSTGRES_TEST_* variables are available
_project_root = Path(__file__).parent.parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


# =============================================================================
# Safety Check - Runs before any integration tests
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def verify_test_database():
    """
    Safety check: Verify we're using test database credentials.

    Set ALLOW_PROD_DB_TESTS=1 to skip this check (for local development only).
    """
    if os.environ.get("ALLOW_PROD_DB_TESTS", "").lower() in ("1", "true", "yes"):
        return

    config = get_test_db_config()
    for indicator in ("prod", "production"):
        assert indicator not in config["db"].lower(), (
            f"SAFETY CHECK FAILED: Database name '{config['db']}' looks like production! "
            "Set POSTGRES_TEST_DB environment variable or ALLOW_PROD_DB_TESTS=1."
        )
        assert indicator not in config["user"].lower(), (
            f"SAFETY CHECK FAILED: Database user '{config['user']}' looks like production! "
            "Set POSTGRES_TEST_USER environment variable or ALLOW_PROD_DB_TESTS=1."
        )


# =============================================================================
# Database Configuration
# =============================================================================


def get_test_db_config() -> dict:
    """
    Get test database configuration from environment variables.

    Priority: POSTGRES_TEST_* > POSTGRES_* > defaults
    """
    return {
        "host": os.environ.get("POSTGRES_HOST", "localhost"),
        "port": os.environ.get("POSTGRES_PORT", "5432"),
        "user": os.environ.get(
            "POSTGRES_TEST_USER", os.environ.get("POSTGRES_USER", "testuser")
        ),
        "password": os.environ.get(
            "POSTGRES_TEST_PASSWORD", os.environ.get("POSTGRES_PASSWORD", "testpass")
        ),
        "db": os.environ.get("POSTGRES_TEST_DB", os.environ.get("POSTGRES_DB", "testdb")),
    }


def get_test_db_url(async_driver: bool = True) -> str:
    """Build database URL from test config environment variables."""
    config = get_test_db_config()
    # URL-encode the password to handle special characters
    encoded_password = quote_plus(config["password"])
    driver = "postgresql+asyncpg" if async_driver else "postgresql+psycopg2"
    return f"{driver}://{config['user']}:{encoded_password}@{config['host']}:{config['port']}/{config['db']}"


pytestmark = pytest.mark.integration

# Child tables first so TRUNCATE order respects foreign keys
TABLES_TO_CLEAN = [
    "tutor_sessions",
    "lesson_progress",
    "user_learning_paths",
    "lessons",
    "learning_templates",
    "chat_messages",
    "chat_conversations",
    "user_streaks",
    "api_keys",
    "profiles",
]


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """
    Create database tables before any tests run.

    Uses synchronous SQLAlchemy to avoid event loop issues. Tables are
    dropped and recreated so the schema matches the models.
    """
    from learnloop.db.base import Base

    sync_engine = create_engine(get_test_db_url(async_driver=False))
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)

    yield

    sync_engine.dispose()


async def _truncate(session: AsyncSession) -> None:
    for table in TABLES_TO_CLEAN:
        await session.execute(text(f"TRUNCATE TABLE {table} CASCADE"))
    await session.commit()


@pytest_asyncio.fixture(scope="function")
async def clean_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session with cleaned tables for testing.

    WARNING: This truncates tables! Only use for integration tests.
    """
    test_engine = create_async_engine(get_test_db_url(async_driver=True), echo=False)
    test_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with test_session_maker() as session:
        await _truncate(session)

        yield session

        await session.rollback()
        await _truncate(session)

    await test_engine.dispose()


@pytest_asyncio.fixture
async def async_test_client(clean_db: AsyncSession):
    """
    Create an async HTTP client configured to use the test database.

    Overrides the app's get_db dependency with the clean_db session; the
    override commits after each request like get_db does.
    """
    from learnloop.db.base import get_db
    from learnloop.main import app

    async def get_test_db():
        """Yield the test database session instead of production."""
        try:
            yield clean_db
            await clean_db.commit()
        except Exception:
            await clean_db.rollback()
            raise

    app.dependency_overrides[get_db] = get_test_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
