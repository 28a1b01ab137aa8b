"""SQLite database connection and schema management.

Provides connection management and schema initialization for quiztrack.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Literal

import structlog

from quiztrack.config.app_config import get_database_path

logger = structlog.get_logger(__name__)

BeginMode = Literal["DEFERRED", "IMMEDIATE"]

# Current database (module-level for simplicity in CLI context)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path

    Returns:
        Path of the initialized database
    """
    global _db_path
    _db_path = db_path or get_database_path()

    with get_db(_db_path) as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


@contextmanager
def get_db(
    db_path: Path | None = None,
    begin: BeginMode = "DEFERRED",
) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Everything done through the connection runs in one transaction.
    IMMEDIATE takes the write lock up front, so concurrent writers queue
    instead of interleaving their read-modify-write cycles.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM quiz_books").fetchall()
    """
    path = db_path or _db_path or get_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=30, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute(f"BEGIN {begin}")

    try:
        yield conn
        if conn.in_transaction:
            conn.commit()
    except Exception:
        if conn.in_transaction:
            conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS quiz_books (
            quiz_book_id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            title TEXT NOT NULL,
            current_round INTEGER NOT NULL DEFAULT 0 CHECK(current_round >= 0),
            use_sections TEXT NOT NULL DEFAULT 'not_decided'
                CHECK(use_sections IN ('not_decided', 'without_sections', 'with_sections')),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS chapters (
            chapter_id TEXT PRIMARY KEY,
            quiz_book_id TEXT NOT NULL REFERENCES quiz_books(quiz_book_id) ON DELETE CASCADE,
            chapter_number INTEGER NOT NULL CHECK(chapter_number BETWEEN 1 AND 1000),
            title TEXT,
            question_count INTEGER CHECK(question_count BETWEEN 0 AND 10000),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS sections (
            section_id TEXT PRIMARY KEY,
            chapter_id TEXT NOT NULL REFERENCES chapters(chapter_id) ON DELETE CASCADE,
            section_number INTEGER NOT NULL CHECK(section_number BETWEEN 1 AND 1000),
            title TEXT,
            question_count INTEGER NOT NULL DEFAULT 0 CHECK(question_count BETWEEN 0 AND 10000),
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- A question lives in a chapter or in a section, never both
        CREATE TABLE IF NOT EXISTS question_records (
            question_id TEXT PRIMARY KEY,
            chapter_id TEXT REFERENCES chapters(chapter_id) ON DELETE CASCADE,
            section_id TEXT REFERENCES sections(section_id) ON DELETE CASCADE,
            question_number INTEGER NOT NULL CHECK(question_number >= 1),
            memo TEXT,
            bookmarked INTEGER NOT NULL DEFAULT 0,
            attempts TEXT NOT NULL DEFAULT '[]',
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            CHECK((chapter_id IS NULL) <> (section_id IS NULL))
        );

        CREATE TABLE IF NOT EXISTS study_records (
            record_id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            quiz_book_id TEXT NOT NULL REFERENCES quiz_books(quiz_book_id) ON DELETE CASCADE,
            chapter_id TEXT NOT NULL,
            section_id TEXT,
            question_number INTEGER NOT NULL,
            result TEXT NOT NULL CHECK(result IN ('○', '×')),
            round INTEGER NOT NULL,
            answered_at TEXT NOT NULL
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_quiz_books_owner ON quiz_books(owner_id);
        CREATE INDEX IF NOT EXISTS idx_chapters_book ON chapters(quiz_book_id);
        CREATE INDEX IF NOT EXISTS idx_sections_chapter ON sections(chapter_id);
        CREATE UNIQUE INDEX IF NOT EXISTS idx_questions_chapter
            ON question_records(chapter_id, question_number) WHERE chapter_id IS NOT NULL;
        CREATE UNIQUE INDEX IF NOT EXISTS idx_questions_section
            ON question_records(section_id, question_number) WHERE section_id IS NOT NULL;
        CREATE INDEX IF NOT EXISTS idx_study_records_book
            ON study_records(quiz_book_id, answered_at);
        CREATE INDEX IF NOT EXISTS idx_study_records_owner
            ON study_records(owner_id, answered_at);
        """
    )
