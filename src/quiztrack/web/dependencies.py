"""Shared FastAPI dependencies."""

from pathlib import Path
from typing import Annotated

from fastapi import Depends, Header

from quiztrack.config.app_config import get_database_path
from quiztrack.config.app_config import get_owner_id as default_owner_id
from quiztrack.core.engine import QuizTrackEngine
from quiztrack.db.database import init_db


def get_db_path() -> Path:
    """Configured database, with its schema created if needed."""
    return init_db(get_database_path())


def get_engine(db_path: Annotated[Path, Depends(get_db_path)]) -> QuizTrackEngine:
    return QuizTrackEngine(db_path=db_path)


def get_owner_id(x_owner_id: Annotated[str | None, Header()] = None) -> str:
    """Owner from the X-Owner-Id header, else the configured default."""
    return x_owner_id or default_owner_id()


DbPathDep = Annotated[Path, Depends(get_db_path)]
EngineDep = Annotated[QuizTrackEngine, Depends(get_engine)]
OwnerDep = Annotated[str, Depends(get_owner_id)]
