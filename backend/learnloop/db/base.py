"""
Database Engine and Request Sessions

One AsyncSession per API request. Services only flush; get_db commits when
the route returns and rolls back when it raises. Tables come from the
alembic revisions in backend/alembic/versions, never from this module.

Usage:
    from learnloop.db.base import get_db

    @router.get("/today")
    async def get_today(db: AsyncSession = Depends(get_db)):
        ...
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from learnloop.config import settings, yaml_config

logger = logging.getLogger(__name__)

POOL_DEFAULTS = {"pool_size": 5, "max_overflow": 10, "pool_timeout": 30}


def pool_options(config: dict[str, Any]) -> dict[str, int]:
    """
    Connection pool sizing from the `database` section of config/default.yaml.

    Unknown keys are ignored; missing ones fall back to POOL_DEFAULTS.
    """
    database = config.get("database") or {}
    return {name: int(database.get(name, default)) for name, default in POOL_DEFAULTS.items()}


# Connections open lazily, so importing this module needs no running database
engine = create_async_engine(
    settings.POSTGRES_URL,
    echo=settings.DEBUG,
    **pool_options(yaml_config),
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by profiles, streaks, learning and chat tables."""


# Registered after Base exists so the model modules can import it
from learnloop.db import models  # noqa: F401, E402
from learnloop.db import models_assistant  # noqa: F401, E402
from learnloop.db import models_learning  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: commit on success, roll back on any error.

    Streak, path and tutor updates made during one request land together
    or not at all.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.debug(f"Rolling back request session after {type(e).__name__}")
            await session.rollback()
            raise
