"""Fixtures for F2 tests - attempt recording against SQLite."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from quiztrack.core.attempt_recorder import StudyActivity
from quiztrack.core.models import SectionMode
from quiztrack.db import quiz_books_repository as books_repo
from quiztrack.db.database import init_db
from quiztrack.db.quiz_books_repository import SqliteQuizBookStore


@dataclass
class RecordingSink:
    """Study activity sink that keeps everything in memory."""

    activities: list[StudyActivity] = field(default_factory=list)

    def record_activity(self, activity: StudyActivity) -> None:
        self.activities.append(activity)


@dataclass
class SampleBook:
    quiz_book_id: str
    owner_id: str
    chapter_id: str
    sectioned_chapter_id: str
    section_id: str


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Fresh database file per test."""
    return init_db(tmp_path / "quiztrack.db")


@pytest.fixture
def store(db_path) -> SqliteQuizBookStore:
    return SqliteQuizBookStore(db_path)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def sample_book(db_path) -> SampleBook:
    """Book with a plain chapter 1 and a chapter 2 holding section 1."""
    book = books_repo.create_quiz_book(
        "Networking", "user-1", use_sections=SectionMode.WITH_SECTIONS, db_path=db_path
    )
    plain = books_repo.add_chapter(book.quiz_book_id, 1, question_count=20, db_path=db_path)
    sectioned = books_repo.add_chapter(book.quiz_book_id, 2, db_path=db_path)
    section = books_repo.add_section(sectioned.chapter_id, 1, question_count=10, db_path=db_path)
    return SampleBook(
        quiz_book_id=book.quiz_book_id,
        owner_id="user-1",
        chapter_id=plain.chapter_id,
        sectioned_chapter_id=sectioned.chapter_id,
        section_id=section.section_id,
    )
