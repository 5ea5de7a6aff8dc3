"""
LearnLoop API

FastAPI application: onboarding, API keys, dashboard chat, streaks,
curricula and the AI tutor.

Run with:
    uvicorn learnloop.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnloop import __version__
from learnloop.config import settings
from learnloop.db.base import engine
from learnloop.middleware import setup_error_handling, setup_rate_limiting
from learnloop.routers import (
    api_keys_router,
    assistant_router,
    health_router,
    learning_router,
    onboarding_router,
    streaks_router,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown hooks. The schema is managed by alembic."""
    logger.info(f"Starting {settings.APP_NAME} {__version__}")
    yield
    await engine.dispose()
    logger.info(f"{settings.APP_NAME} shut down")


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware and routers."""
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Daily learning streaks, 7-day learning paths and an AI tutor",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMITING_ENABLED)

    app.include_router(health_router.router)
    app.include_router(onboarding_router.router)
    app.include_router(api_keys_router.router)
    app.include_router(assistant_router.router)
    app.include_router(streaks_router.router)
    app.include_router(learning_router.router)

    return app


app = create_app()
