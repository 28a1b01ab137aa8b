"""Fixtures for F3 tests - progress analytics and the engine."""

from pathlib import Path

import pytest

from quiztrack.core.engine import QuizTrackEngine
from quiztrack.db.database import init_db


@pytest.fixture
def db_path(tmp_path) -> Path:
    return init_db(tmp_path / "quiztrack.db")


@pytest.fixture
def engine(db_path) -> QuizTrackEngine:
    return QuizTrackEngine(db_path=db_path)
