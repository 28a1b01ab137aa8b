"""Repository functions for the quiz book tree.

Provides:
- CRUD for quiz_books, chapters and sections
- SqliteQuizBookStore: tree loads and per-question read-modify-write
  transactions used by the attempt recorder
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from quiztrack.core.attempt_recorder import ContainerLocation
from quiztrack.core.errors import NotFoundError
from quiztrack.core.models import (
    Attempt,
    Chapter,
    ContainerRef,
    QuestionRecord,
    QuizBook,
    Section,
    SectionMode,
)
from quiztrack.db.database import get_db

logger = structlog.get_logger(__name__)

# =============================================================================
# ROW MAPPING
# =============================================================================


def _row_to_question(row: sqlite3.Row) -> QuestionRecord:
    return QuestionRecord(
        question_id=row["question_id"],
        question_number=row["question_number"],
        chapter_id=row["chapter_id"],
        section_id=row["section_id"],
        attempts=[Attempt.from_dict(a) for a in json.loads(row["attempts"])],
        memo=row["memo"],
        bookmarked=bool(row["bookmarked"]),
    )


def _row_to_book(row: sqlite3.Row) -> QuizBook:
    return QuizBook(
        quiz_book_id=row["quiz_book_id"],
        owner_id=row["owner_id"],
        title=row["title"],
        current_round=row["current_round"],
        use_sections=SectionMode(row["use_sections"]),
    )


def _load_tree(conn: sqlite3.Connection, book_row: sqlite3.Row) -> QuizBook:
    """Build the full tree of one book using an open connection."""
    book = _row_to_book(book_row)

    chapters: dict[str, Chapter] = {}
    for row in conn.execute(
        "SELECT * FROM chapters WHERE quiz_book_id = ? ORDER BY chapter_number, created_at",
        (book.quiz_book_id,),
    ):
        chapter = Chapter(
            chapter_id=row["chapter_id"],
            quiz_book_id=row["quiz_book_id"],
            chapter_number=row["chapter_number"],
            question_count=row["question_count"],
            title=row["title"],
        )
        chapters[chapter.chapter_id] = chapter
        book.chapters.append(chapter)

    sections: dict[str, Section] = {}
    for row in conn.execute(
        """
        SELECT s.* FROM sections s
        JOIN chapters c ON c.chapter_id = s.chapter_id
        WHERE c.quiz_book_id = ?
        ORDER BY s.section_number, s.created_at
        """,
        (book.quiz_book_id,),
    ):
        section = Section(
            section_id=row["section_id"],
            chapter_id=row["chapter_id"],
            section_number=row["section_number"],
            question_count=row["question_count"],
            title=row["title"],
        )
        sections[section.section_id] = section
        chapters[section.chapter_id].sections.append(section)

    for row in conn.execute(
        """
        SELECT q.* FROM question_records q
        LEFT JOIN chapters c ON c.chapter_id = q.chapter_id
        LEFT JOIN sections s ON s.section_id = q.section_id
        LEFT JOIN chapters sc ON sc.chapter_id = s.chapter_id
        WHERE c.quiz_book_id = ? OR sc.quiz_book_id = ?
        ORDER BY q.question_number
        """,
        (book.quiz_book_id, book.quiz_book_id),
    ):
        record = _row_to_question(row)
        if record.section_id is not None:
            sections[record.section_id].questions.append(record)
        else:
            chapters[record.chapter_id].questions.append(record)  # type: ignore[index]

    return book


# =============================================================================
# STORE
# =============================================================================


class SqliteStoreTransaction:
    """Question-level unit of work bound to one write transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def resolve_container(self, container: ContainerRef) -> ContainerLocation:
        if container.is_section:
            row = self._conn.execute(
                """
                SELECT s.section_id, c.chapter_id, b.quiz_book_id, b.owner_id
                FROM sections s
                JOIN chapters c ON c.chapter_id = s.chapter_id
                JOIN quiz_books b ON b.quiz_book_id = c.quiz_book_id
                WHERE s.section_id = ?
                """,
                (container.section_id,),
            ).fetchone()
            if row is None:
                raise NotFoundError("Section", container.section_id)
            return ContainerLocation(
                owner_id=row["owner_id"],
                quiz_book_id=row["quiz_book_id"],
                chapter_id=row["chapter_id"],
                section_id=row["section_id"],
            )

        row = self._conn.execute(
            """
            SELECT c.chapter_id, b.quiz_book_id, b.owner_id
            FROM chapters c
            JOIN quiz_books b ON b.quiz_book_id = c.quiz_book_id
            WHERE c.chapter_id = ?
            """,
            (container.chapter_id,),
        ).fetchone()
        if row is None:
            raise NotFoundError("Chapter", container.chapter_id)
        return ContainerLocation(
            owner_id=row["owner_id"],
            quiz_book_id=row["quiz_book_id"],
            chapter_id=row["chapter_id"],
        )

    def get_question(
        self, container: ContainerRef, question_number: int
    ) -> QuestionRecord | None:
        column = "section_id" if container.is_section else "chapter_id"
        row = self._conn.execute(
            f"SELECT * FROM question_records WHERE {column} = ? AND question_number = ?",
            (container.id, question_number),
        ).fetchone()
        if row is None:
            return None
        return _row_to_question(row)

    def save_question(self, record: QuestionRecord) -> None:
        self._conn.execute(
            """
            INSERT INTO question_records (
                question_id, chapter_id, section_id, question_number,
                memo, bookmarked, attempts
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(question_id) DO UPDATE SET
                memo = excluded.memo,
                bookmarked = excluded.bookmarked,
                attempts = excluded.attempts,
                updated_at = datetime('now')
            """,
            (
                record.question_id,
                record.chapter_id,
                record.section_id,
                record.question_number,
                record.memo,
                int(record.bookmarked),
                json.dumps(record.attempts_json(), ensure_ascii=False),
            ),
        )
        logger.debug(
            "question_records.saved",
            question_id=record.question_id,
            attempts=len(record.attempts),
        )

    def delete_question(self, record: QuestionRecord) -> None:
        self._conn.execute(
            "DELETE FROM question_records WHERE question_id = ?", (record.question_id,)
        )
        logger.debug("question_records.deleted", question_id=record.question_id)


class SqliteQuizBookStore:
    """Persistence collaborator backed by SQLite.

    Each transaction() holds the database write lock for its whole
    duration, so mutations of the same question never overlap. Tree loads
    read inside a single transaction and see one consistent snapshot.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    @contextmanager
    def transaction(self) -> Generator[SqliteStoreTransaction, None, None]:
        with get_db(self.db_path, begin="IMMEDIATE") as conn:
            yield SqliteStoreTransaction(conn)

    def load_tree(self, quiz_book_id: str, owner_id: str) -> QuizBook:
        """Load one quiz book with chapters, sections, questions and attempts.

        Raises:
            NotFoundError: If the book does not exist for this owner
        """
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM quiz_books WHERE quiz_book_id = ? AND owner_id = ?",
                (quiz_book_id, owner_id),
            ).fetchone()
            if row is None:
                raise NotFoundError("QuizBook", quiz_book_id)
            return _load_tree(conn, row)

    def load_trees(self, owner_id: str) -> list[QuizBook]:
        """Load every quiz book of an owner, newest first."""
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM quiz_books WHERE owner_id = ? ORDER BY created_at DESC",
                (owner_id,),
            ).fetchall()
            return [_load_tree(conn, row) for row in rows]


# =============================================================================
# CRUD
# =============================================================================


def create_quiz_book(
    title: str,
    owner_id: str,
    use_sections: SectionMode = SectionMode.NOT_DECIDED,
    current_round: int = 0,
    db_path: Path | None = None,
) -> QuizBook:
    """Insert a new quiz book.

    Args:
        title: Book title
        owner_id: Owner identifier
        use_sections: Whether chapters are split into sections
        current_round: Last completed round
        db_path: Database override

    Returns:
        The new QuizBook (no chapters)
    """
    book = QuizBook(
        quiz_book_id=str(uuid.uuid4()),
        owner_id=owner_id,
        title=title,
        current_round=current_round,
        use_sections=use_sections,
    )
    with get_db(db_path) as conn:
        conn.execute(
            """
            INSERT INTO quiz_books (quiz_book_id, owner_id, title, current_round, use_sections)
            VALUES (?, ?, ?, ?, ?)
            """,
            (book.quiz_book_id, owner_id, title, current_round, use_sections.value),
        )

    logger.info("quiz_books.inserted", quiz_book_id=book.quiz_book_id, title=title)
    return book


def add_chapter(
    quiz_book_id: str,
    chapter_number: int,
    title: str | None = None,
    question_count: int | None = None,
    db_path: Path | None = None,
) -> Chapter:
    """Insert a chapter into an existing quiz book.

    Raises:
        NotFoundError: If the quiz book does not exist
    """
    chapter = Chapter(
        chapter_id=str(uuid.uuid4()),
        quiz_book_id=quiz_book_id,
        chapter_number=chapter_number,
        question_count=question_count,
        title=title,
    )
    with get_db(db_path) as conn:
        exists = conn.execute(
            "SELECT 1 FROM quiz_books WHERE quiz_book_id = ?", (quiz_book_id,)
        ).fetchone()
        if exists is None:
            raise NotFoundError("QuizBook", quiz_book_id)
        conn.execute(
            """
            INSERT INTO chapters (chapter_id, quiz_book_id, chapter_number, title, question_count)
            VALUES (?, ?, ?, ?, ?)
            """,
            (chapter.chapter_id, quiz_book_id, chapter_number, title, question_count),
        )

    logger.debug("chapters.inserted", chapter_id=chapter.chapter_id, quiz_book_id=quiz_book_id)
    return chapter


def add_section(
    chapter_id: str,
    section_number: int,
    title: str | None = None,
    question_count: int = 0,
    db_path: Path | None = None,
) -> Section:
    """Insert a section into an existing chapter.

    Raises:
        NotFoundError: If the chapter does not exist
    """
    section = Section(
        section_id=str(uuid.uuid4()),
        chapter_id=chapter_id,
        section_number=section_number,
        question_count=question_count,
        title=title,
    )
    with get_db(db_path) as conn:
        exists = conn.execute(
            "SELECT 1 FROM chapters WHERE chapter_id = ?", (chapter_id,)
        ).fetchone()
        if exists is None:
            raise NotFoundError("Chapter", chapter_id)
        conn.execute(
            """
            INSERT INTO sections (section_id, chapter_id, section_number, title, question_count)
            VALUES (?, ?, ?, ?, ?)
            """,
            (section.section_id, chapter_id, section_number, title, question_count),
        )

    logger.debug("sections.inserted", section_id=section.section_id, chapter_id=chapter_id)
    return section


def update_quiz_book(
    quiz_book_id: str,
    owner_id: str,
    current_round: int | None = None,
    use_sections: SectionMode | None = None,
    db_path: Path | None = None,
) -> None:
    """Update the learner-managed fields of a quiz book.

    Raises:
        NotFoundError: If the quiz book does not exist for this owner
        ValueError: If current_round is negative
    """
    if current_round is not None and current_round < 0:
        raise ValueError(f"current_round must be >= 0, got {current_round}")

    with get_db(db_path) as conn:
        row = conn.execute(
            "SELECT current_round, use_sections FROM quiz_books "
            "WHERE quiz_book_id = ? AND owner_id = ?",
            (quiz_book_id, owner_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("QuizBook", quiz_book_id)

        conn.execute(
            "UPDATE quiz_books SET current_round = ?, use_sections = ? WHERE quiz_book_id = ?",
            (
                row["current_round"] if current_round is None else current_round,
                row["use_sections"] if use_sections is None else use_sections.value,
                quiz_book_id,
            ),
        )

    logger.info(
        "quiz_books.updated",
        quiz_book_id=quiz_book_id,
        current_round=current_round,
        use_sections=use_sections.value if use_sections else None,
    )


def delete_quiz_book(quiz_book_id: str, owner_id: str, db_path: Path | None = None) -> bool:
    """Delete a quiz book and everything below it.

    Returns:
        True if deleted, False if not found
    """
    with get_db(db_path) as conn:
        cursor = conn.execute(
            "DELETE FROM quiz_books WHERE quiz_book_id = ? AND owner_id = ?",
            (quiz_book_id, owner_id),
        )

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("quiz_books.deleted", quiz_book_id=quiz_book_id)

    return deleted
