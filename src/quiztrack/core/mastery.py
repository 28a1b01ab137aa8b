"""Mastery indicators derived from attempt histories.

- question_color: badge for a question from its latest confirmed streak
- card_colors: colour per attempt, grouping runs of correct answers
- recent_study_items: latest confirmed activity per chapter/section
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

from quiztrack.core.models import (
    Attempt,
    AttemptResult,
    QuestionRecord,
    QuizBook,
    SectionMode,
)


class MasteryColor(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    GREEN = "green"
    RED = "red"
    GRAY = "gray"


def _run_color(length: int) -> MasteryColor:
    if length >= 3:
        return MasteryColor.GOLD
    if length == 2:
        return MasteryColor.SILVER
    return MasteryColor.GREEN


def question_color(attempts: Sequence[Attempt]) -> MasteryColor:
    """Badge colour from the tail of the confirmed history.

    3 correct in a row -> gold, 2 -> silver, last correct -> green,
    last incorrect -> red, nothing answered -> gray.
    """
    confirmed = [a for a in attempts if a.confirmed]
    if not confirmed:
        return MasteryColor.GRAY

    streak = 0
    for attempt in reversed(confirmed):
        if not attempt.is_correct:
            break
        streak += 1
        if streak == 3:
            break

    if streak == 0:
        return MasteryColor.RED
    return _run_color(streak)


def card_colors(attempts: Sequence[Attempt]) -> list[MasteryColor]:
    """Colour for every confirmed attempt.

    Each maximal run of correct answers shares one colour chosen by its
    length; incorrect answers are red.
    """
    confirmed = [a for a in attempts if a.confirmed]
    colors: list[MasteryColor] = []

    i = 0
    while i < len(confirmed):
        if not confirmed[i].is_correct:
            colors.append(MasteryColor.RED)
            i += 1
            continue

        j = i
        while j < len(confirmed) and confirmed[j].is_correct:
            j += 1
        colors.extend([_run_color(j - i)] * (j - i))
        i = j

    return colors


# =============================================================================
# RECENT STUDY ITEMS
# =============================================================================


@dataclass
class RecentStudyItem:
    """Latest confirmed answer inside one chapter or section."""

    quiz_book_id: str
    quiz_book_title: str
    chapter_id: str
    chapter_number: int
    last_question_number: int
    last_result: AttemptResult
    last_answered_at: datetime
    section_id: str | None = None
    section_number: int | None = None

    @property
    def kind(self) -> str:
        return "section" if self.section_id else "chapter"


def _latest_confirmed(
    records: Iterable[QuestionRecord],
) -> tuple[QuestionRecord, Attempt] | None:
    latest: tuple[QuestionRecord, Attempt] | None = None
    for record in records:
        confirmed = record.confirmed_attempts()
        if not confirmed:
            continue
        attempt = confirmed[-1]
        if latest is None or attempt.answered_at > latest[1].answered_at:
            latest = (record, attempt)
    return latest


def recent_study_items(books: Iterable[QuizBook], limit: int = 3) -> list[RecentStudyItem]:
    """Most recently studied chapters/sections across books, newest first."""
    items: list[RecentStudyItem] = []

    for book in books:
        for chapter in book.chapters:
            if book.use_sections is SectionMode.WITH_SECTIONS and chapter.has_sections:
                for section in chapter.sections:
                    found = _latest_confirmed(section.questions)
                    if found is None:
                        continue
                    record, attempt = found
                    items.append(
                        RecentStudyItem(
                            quiz_book_id=book.quiz_book_id,
                            quiz_book_title=book.title,
                            chapter_id=chapter.chapter_id,
                            chapter_number=chapter.chapter_number,
                            section_id=section.section_id,
                            section_number=section.section_number,
                            last_question_number=record.question_number,
                            last_result=attempt.result,
                            last_answered_at=attempt.answered_at,
                        )
                    )
            else:
                found = _latest_confirmed(chapter.questions)
                if found is None:
                    continue
                record, attempt = found
                items.append(
                    RecentStudyItem(
                        quiz_book_id=book.quiz_book_id,
                        quiz_book_title=book.title,
                        chapter_id=chapter.chapter_id,
                        chapter_number=chapter.chapter_number,
                        last_question_number=record.question_number,
                        last_result=attempt.result,
                        last_answered_at=attempt.answered_at,
                    )
                )

    items.sort(key=lambda item: item.last_answered_at, reverse=True)
    return items[:limit]
