"""FastAPI application factory.

Main entry point for the quiztrack Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quiztrack import __version__
from quiztrack.config.app_config import get_database_path
from quiztrack.core.errors import (
    InvalidContainerError,
    InvariantViolationError,
    NotFoundError,
)
from quiztrack.db.database import init_db
from quiztrack.web.routes import (
    answers_router,
    health_router,
    quiz_books_router,
    study_records_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    db_path = init_db(get_database_path())
    logger.info("api_startup", db_path=str(db_path))
    yield


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _invalid_container(request: Request, exc: InvalidContainerError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _invariant_violation(request: Request, exc: InvariantViolationError) -> JSONResponse:
    logger.error(
        "api.invariant_violation",
        endpoint=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="quiztrack API",
        description="Attempt tracking and progress analytics for quiz books",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidContainerError, _invalid_container)
    app.add_exception_handler(InvariantViolationError, _invariant_violation)

    app.include_router(health_router)
    app.include_router(quiz_books_router)
    app.include_router(answers_router)
    app.include_router(study_records_router)

    return app


# Default app instance for uvicorn
app = create_app()
