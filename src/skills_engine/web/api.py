"""FastAPI application factory.

Main entry point for the Skills Engine Web API.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from skills_engine import __version__
from skills_engine.config.app_config import load_app_config
from skills_engine.coordinator.client import create_coordinator_client
from skills_engine.core.interfaces import ProfileSink
from skills_engine.db.database import init_db
from skills_engine.web.routes import (
    competencies_router,
    exams_router,
    health_router,
    users_router,
)

logger = structlog.get_logger(__name__)


def create_app(db_path: Path | None = None, sink: ProfileSink | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Database file; defaults to paths.db_path from the config.
        sink: Outbound collaborator; defaults to a CoordinatorClient opened
            at startup and closed at shutdown.

    Returns:
        Configured FastAPI app instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        config = load_app_config()
        path = app.state.db_path or config.db_path
        init_db(path)
        app.state.db_path = path
        opened = None
        if app.state.sink is None:
            opened = create_coordinator_client(config.coordinator)
            app.state.sink = opened
        logger.info("api_startup", db_path=str(path), coordinator=app.state.sink is not None)
        try:
            yield
        finally:
            if opened is not None:
                opened.close()
                app.state.sink = None
                logger.info("api_shutdown", coordinator_closed=True)

    app = FastAPI(
        title="Skills Engine API",
        description="Competency coverage from exam results",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.db_path = db_path
    app.state.sink = sink

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(exams_router)
    app.include_router(users_router)
    app.include_router(competencies_router)

    return app


# Default app instance for uvicorn
app = create_app()
