"""Repository functions for the study_records table.

The study log keeps only the most recent entries of each quiz book; older
rows are pruned on every insert.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from quiztrack.config.app_config import load_app_config
from quiztrack.core.attempt_recorder import StudyActivity
from quiztrack.core.models import AttemptResult
from quiztrack.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class StudyRecord:
    """Study record from database."""

    record_id: str
    owner_id: str
    quiz_book_id: str
    chapter_id: str
    section_id: str | None
    question_number: int
    result: AttemptResult
    round: int
    answered_at: str


def _row_to_record(row: sqlite3.Row) -> StudyRecord:
    return StudyRecord(
        record_id=row["record_id"],
        owner_id=row["owner_id"],
        quiz_book_id=row["quiz_book_id"],
        chapter_id=row["chapter_id"],
        section_id=row["section_id"],
        question_number=row["question_number"],
        result=AttemptResult(row["result"]),
        round=row["round"],
        answered_at=row["answered_at"],
    )


def _timestamp(value: datetime) -> str:
    return value.isoformat()


class SqliteStudyRecordSink:
    """Study-history log with a per-quiz-book retention cap."""

    def __init__(self, db_path: Path | None = None, retention: int | None = None):
        self.db_path = db_path
        self.retention = retention or load_app_config().study_records.retention_per_book

    def record_activity(self, activity: StudyActivity) -> None:
        """Append one entry and prune the quiz book's log to the retention cap."""
        with get_db(self.db_path, begin="IMMEDIATE") as conn:
            conn.execute(
                """
                INSERT INTO study_records (
                    record_id, owner_id, quiz_book_id, chapter_id, section_id,
                    question_number, result, round, answered_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(uuid.uuid4()),
                    activity.owner_id,
                    activity.quiz_book_id,
                    activity.chapter_id,
                    activity.section_id,
                    activity.question_number,
                    activity.result.value,
                    activity.round,
                    _timestamp(activity.answered_at),
                ),
            )
            cursor = conn.execute(
                """
                DELETE FROM study_records
                WHERE quiz_book_id = ? AND record_id NOT IN (
                    SELECT record_id FROM study_records
                    WHERE quiz_book_id = ?
                    ORDER BY answered_at DESC, rowid DESC
                    LIMIT ?
                )
                """,
                (activity.quiz_book_id, activity.quiz_book_id, self.retention),
            )

        logger.debug(
            "study_records.inserted",
            quiz_book_id=activity.quiz_book_id,
            question_number=activity.question_number,
        )
        if cursor.rowcount > 0:
            logger.debug(
                "study_records.pruned",
                quiz_book_id=activity.quiz_book_id,
                removed=cursor.rowcount,
            )


def get_recent_records(
    owner_id: str,
    limit: int = 3,
    db_path: Path | None = None,
) -> list[StudyRecord]:
    """Get an owner's newest study records across all quiz books."""
    with get_db(db_path) as conn:
        rows = conn.execute(
            """
            SELECT * FROM study_records
            WHERE owner_id = ?
            ORDER BY answered_at DESC, rowid DESC
            LIMIT ?
            """,
            (owner_id, limit),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def count_records(quiz_book_id: str, db_path: Path | None = None) -> int:
    """Number of study records kept for a quiz book."""
    with get_db(db_path) as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM study_records WHERE quiz_book_id = ?",
            (quiz_book_id,),
        ).fetchone()
    return row["n"]
