"""Progress analytics module.

Responsibilities:
- Chapter correctness rate for one round (integer percent)
- Book-wide per-round totals (one decimal percent, every round 1..max)
- Per-chapter and per-section per-round totals (only non-empty rounds)
- Assemble all of the above for one quiz book snapshot
- List the questions answered in one round of a chapter or section

All functions are pure over an already loaded tree. Empty input yields
zero-valued results, never an exception. Only confirmed attempts count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Sequence

import structlog

from quiztrack.core.models import AttemptResult, Chapter, QuestionRecord, QuizBook
from quiztrack.core.rounds import attempt_at_round, check_round_sequence

logger = structlog.get_logger(__name__)

# =============================================================================
# RATE ROUNDING
# =============================================================================


def percent(correct: int, total: int) -> int:
    """Correct share as an integer percent, half rounded up. 0 when total is 0."""
    if total == 0:
        return 0
    return (200 * correct + total) // (2 * total)


def percent_one_decimal(correct: int, total: int) -> float:
    """Correct share as a percent with one decimal, half rounded up. 0 when total is 0."""
    if total == 0:
        return 0.0
    return ((2000 * correct + total) // (2 * total)) / 10


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionEntry:
    """A question record flattened out of the tree, with its owners."""

    chapter_id: str
    chapter_number: int
    question_number: int
    section_id: str | None = None
    section_number: int | None = None
    # round -> correct, confirmed attempts only
    results: dict[int, bool] = field(default_factory=dict)

    @property
    def max_round(self) -> int:
        return max(self.results, default=0)


@dataclass
class RoundStats:
    round: int
    total_questions: int
    correct_answers: int
    correct_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "correct_rate": self.correct_rate,
        }


@dataclass
class ChapterStats:
    round: int
    chapter_id: str
    chapter_number: int
    total_questions: int
    correct_answers: int
    correct_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "chapter_id": self.chapter_id,
            "chapter_number": self.chapter_number,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "correct_rate": self.correct_rate,
        }


@dataclass
class SectionStats:
    round: int
    section_id: str
    chapter_id: str
    section_number: int
    total_questions: int
    correct_answers: int
    correct_rate: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "section_id": self.section_id,
            "chapter_id": self.chapter_id,
            "section_number": self.section_number,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "correct_rate": self.correct_rate,
        }


@dataclass
class QuizBookAnalytics:
    """Statistics for one quiz book, computed from one snapshot."""

    quiz_book_id: str
    total_rounds: int
    round_stats: list[RoundStats]
    chapter_stats: list[ChapterStats]
    section_stats: list[SectionStats]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "quiz_book_id": self.quiz_book_id,
            "total_rounds": self.total_rounds,
            "round_stats": [s.to_dict() for s in self.round_stats],
            "chapter_stats": [s.to_dict() for s in self.chapter_stats],
            "section_stats": [s.to_dict() for s in self.section_stats],
        }


@dataclass
class RoundQuestion:
    question_number: int
    result: AttemptResult
    answered_at: datetime


@dataclass
class RoundQuestionList:
    """Questions of one container answered in one round."""

    round: int
    questions: list[RoundQuestion]

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def correct(self) -> int:
        return sum(1 for q in self.questions if q.result.is_correct)

    @property
    def rate(self) -> int:
        return percent(self.correct, self.total)


# =============================================================================
# CHAPTER RATE
# =============================================================================


def rated_questions(chapter: Chapter) -> list[QuestionRecord]:
    """Question records that count towards a chapter's rate.

    A chapter with sections is rated only from its sections' records; any
    records attached directly to it are ignored.
    """
    if chapter.has_sections:
        return [q for section in chapter.sections for q in section.questions]
    return list(chapter.questions)


def chapter_rate(chapter: Chapter, round_number: int) -> int:
    """Integer percent of questions answered correctly at round_number.

    Only questions with a confirmed attempt at that round count. A chapter
    without any such question rates 0.
    """
    total = 0
    correct = 0
    for record in rated_questions(chapter):
        check_round_sequence(record)
        attempt = attempt_at_round(record.attempts, round_number)
        if attempt is None:
            continue
        total += 1
        if attempt.is_correct:
            correct += 1

    return percent(correct, total)


# =============================================================================
# FLATTENING
# =============================================================================


def flatten_questions(book: QuizBook) -> list[QuestionEntry]:
    """Walk the tree once and collect every question record with its owners.

    Raises:
        InvariantViolationError: If any history is out of round sequence
    """
    entries: list[QuestionEntry] = []
    pending: list[tuple[Chapter, int | None, str | None, Sequence[QuestionRecord]]] = []

    for chapter in book.chapters:
        pending.append((chapter, None, None, chapter.questions))
        for section in chapter.sections:
            pending.append(
                (chapter, section.section_number, section.section_id, section.questions)
            )

    for chapter, section_number, section_id, records in pending:
        for record in records:
            check_round_sequence(record)
            entries.append(
                QuestionEntry(
                    chapter_id=chapter.chapter_id,
                    chapter_number=chapter.chapter_number,
                    question_number=record.question_number,
                    section_id=section_id,
                    section_number=section_number,
                    results={a.round: a.is_correct for a in record.confirmed_attempts()},
                )
            )

    return entries


# =============================================================================
# AGGREGATION
# =============================================================================


def max_round(entries: Iterable[QuestionEntry]) -> int:
    """Highest confirmed round anywhere in entries (0 when none)."""
    return max((e.max_round for e in entries), default=0)


def _tally(entries: Iterable[QuestionEntry], round_number: int) -> tuple[int, int]:
    total = 0
    correct = 0
    for entry in entries:
        outcome = entry.results.get(round_number)
        if outcome is None:
            continue
        total += 1
        if outcome:
            correct += 1
    return total, correct


def round_stats(
    entries: Sequence[QuestionEntry], highest_round: int | None = None
) -> list[RoundStats]:
    """Book-wide totals for every round 1..max, including empty rounds."""
    if highest_round is None:
        highest_round = max_round(entries)

    stats = []
    for round_number in range(1, highest_round + 1):
        total, correct = _tally(entries, round_number)
        stats.append(
            RoundStats(
                round=round_number,
                total_questions=total,
                correct_answers=correct,
                correct_rate=percent_one_decimal(correct, total),
            )
        )
    return stats


def chapter_stats(
    entries: Sequence[QuestionEntry],
    highest_round: int,
    chapters: Sequence[Chapter],
) -> list[ChapterStats]:
    """Per-chapter totals; a (round, chapter) pair with no answers is omitted.

    Ordered by round, then chapter number.
    """
    groups: dict[str, list[QuestionEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.chapter_id, []).append(entry)

    stats = []
    for chapter in chapters:
        group = groups.get(chapter.chapter_id)
        if not group:
            continue
        for round_number in range(1, highest_round + 1):
            total, correct = _tally(group, round_number)
            if total == 0:
                continue
            stats.append(
                ChapterStats(
                    round=round_number,
                    chapter_id=chapter.chapter_id,
                    chapter_number=chapter.chapter_number,
                    total_questions=total,
                    correct_answers=correct,
                    correct_rate=percent_one_decimal(correct, total),
                )
            )

    stats.sort(key=lambda s: (s.round, s.chapter_number))
    return stats


def section_stats(
    entries: Sequence[QuestionEntry],
    highest_round: int,
    chapters: Sequence[Chapter],
) -> list[SectionStats]:
    """Per-section totals; a (round, section) pair with no answers is omitted.

    Ordered by round, then section number.
    """
    groups: dict[str, list[QuestionEntry]] = {}
    for entry in entries:
        if entry.section_id is not None:
            groups.setdefault(entry.section_id, []).append(entry)

    stats = []
    for chapter in chapters:
        for section in chapter.sections:
            group = groups.get(section.section_id)
            if not group:
                continue
            for round_number in range(1, highest_round + 1):
                total, correct = _tally(group, round_number)
                if total == 0:
                    continue
                stats.append(
                    SectionStats(
                        round=round_number,
                        section_id=section.section_id,
                        chapter_id=chapter.chapter_id,
                        section_number=section.section_number,
                        total_questions=total,
                        correct_answers=correct,
                        correct_rate=percent_one_decimal(correct, total),
                    )
                )

    stats.sort(key=lambda s: (s.round, s.section_number))
    return stats


def analyze(book: QuizBook) -> QuizBookAnalytics:
    """Assemble round, chapter and section statistics for one snapshot."""
    entries = flatten_questions(book)
    highest_round = max_round(entries)

    analytics = QuizBookAnalytics(
        quiz_book_id=book.quiz_book_id,
        total_rounds=highest_round,
        round_stats=round_stats(entries, highest_round),
        chapter_stats=chapter_stats(entries, highest_round, book.chapters),
        section_stats=section_stats(entries, highest_round, book.chapters),
    )

    logger.debug(
        "analytics.computed",
        quiz_book_id=book.quiz_book_id,
        questions=len(entries),
        total_rounds=highest_round,
    )
    return analytics


# =============================================================================
# ROUND QUESTION LIST
# =============================================================================


def round_questions(
    questions: Iterable[QuestionRecord], round_number: int
) -> RoundQuestionList:
    """Questions with a confirmed attempt at round_number, by question number."""
    rows = []
    for record in questions:
        attempt = attempt_at_round(record.attempts, round_number)
        if attempt is not None:
            rows.append(
                RoundQuestion(
                    question_number=record.question_number,
                    result=attempt.result,
                    answered_at=attempt.answered_at,
                )
            )

    rows.sort(key=lambda r: r.question_number)
    return RoundQuestionList(round=round_number, questions=rows)
