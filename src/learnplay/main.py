"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from learnplay.achievements.router import router as achievements_router
from learnplay.catalog.seed import seed_catalog
from learnplay.config import get_settings
from learnplay.database import close_db, get_session_factory, init_db
from learnplay.games.router import router as games_router
from learnplay.health.router import router as health_router
from learnplay.middleware import setup_middleware
from learnplay.redis_client import close_redis, init_redis
from learnplay.store import SqlTableStore, StoreError
from learnplay.study.router import router as study_router
from learnplay.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url, pool_size=settings.database_pool_size)
    if settings.redis_url:
        await init_redis(settings.redis_url)

    # Catalog seeding is idempotent
    if settings.seed_catalog_on_startup:
        try:
            await seed_catalog(SqlTableStore(get_session_factory()))
        except StoreError:
            logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LearnPlay API",
        description="Backend API for LearnPlay, a gamified learning platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(games_router)
    app.include_router(study_router)
    app.include_router(achievements_router)

    return app


app = create_app()
