"""Fixtures for F5 tests - Web API."""

import pytest
from fastapi.testclient import TestClient

from quiztrack.core.models import SectionMode
from quiztrack.db import quiz_books_repository as books_repo
from quiztrack.db.database import init_db
from quiztrack.web.api import create_app

OWNER = "web-user"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Isolated database selected through the environment."""
    path = tmp_path / "web.db"
    monkeypatch.setenv("QUIZTRACK_DB_PATH", str(path))
    return init_db(path)


@pytest.fixture
def client(db_path):
    """Create test client with an isolated database."""
    app = create_app()
    return TestClient(app, headers={"X-Owner-Id": OWNER})


@pytest.fixture
def book(db_path):
    """Quiz book with a plain chapter 1 and chapter 2 holding section 1."""
    quiz_book = books_repo.create_quiz_book(
        "Web Book", OWNER, use_sections=SectionMode.WITH_SECTIONS, db_path=db_path
    )
    chapter = books_repo.add_chapter(quiz_book.quiz_book_id, 1, db_path=db_path)
    sectioned = books_repo.add_chapter(quiz_book.quiz_book_id, 2, db_path=db_path)
    section = books_repo.add_section(sectioned.chapter_id, 1, db_path=db_path)
    return {
        "id": quiz_book.quiz_book_id,
        "chapter": chapter.chapter_id,
        "sectioned": sectioned.chapter_id,
        "section": section.section_id,
    }
