"""
NeuroLex API

FastAPI application exposing the vocabulary library, study sessions and
dashboard statistics.

Run:
    uvicorn neurolex.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neurolex import __version__
from neurolex.config import settings
from neurolex.db.base import init_db
from neurolex.middleware.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure root logging from LOG_LEVEL (DEBUG forces debug level)."""
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"{settings.APP_NAME} started (database: {settings.DATABASE_URL})")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


def create_app() -> FastAPI:
    setup_logging()

    application = FastAPI(title=f"{settings.APP_NAME} API", version=__version__, lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(application, debug=settings.DEBUG)

    from neurolex.routers import health, stats, study, terms

    application.include_router(health.router)
    application.include_router(terms.router)
    application.include_router(study.router)
    application.include_router(stats.router)

    return application


app = create_app()
