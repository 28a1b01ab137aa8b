"""Tests for mastery colours and recent study items."""

from datetime import datetime, timedelta, timezone

from quiztrack.core.mastery import (
    MasteryColor,
    card_colors,
    question_color,
    recent_study_items,
)
from quiztrack.core.models import (
    Attempt,
    AttemptResult,
    Chapter,
    QuestionRecord,
    QuizBook,
    Section,
    SectionMode,
)

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _history(pattern: str, confirmed: bool = True) -> list[Attempt]:
    """Build attempts from a string like "ox" (o = correct)."""
    return [
        Attempt(
            round=i + 1,
            result=AttemptResult.CORRECT if c == "o" else AttemptResult.INCORRECT,
            confirmed=confirmed,
        )
        for i, c in enumerate(pattern)
    ]


class TestQuestionColor:
    def test_no_attempts_is_gray(self):
        assert question_color([]) is MasteryColor.GRAY

    def test_drafts_only_is_gray(self):
        assert question_color(_history("ooo", confirmed=False)) is MasteryColor.GRAY

    def test_last_incorrect_is_red(self):
        assert question_color(_history("ooox")) is MasteryColor.RED

    def test_single_correct_is_green(self):
        assert question_color(_history("xo")) is MasteryColor.GREEN

    def test_two_in_a_row_is_silver(self):
        assert question_color(_history("xoo")) is MasteryColor.SILVER

    def test_three_in_a_row_is_gold(self):
        assert question_color(_history("xooo")) is MasteryColor.GOLD
        assert question_color(_history("ooooo")) is MasteryColor.GOLD


class TestCardColors:
    def test_runs_share_a_colour(self):
        colors = card_colors(_history("oxooxooo"))
        assert colors == [
            MasteryColor.GREEN,
            MasteryColor.RED,
            MasteryColor.SILVER,
            MasteryColor.SILVER,
            MasteryColor.RED,
            MasteryColor.GOLD,
            MasteryColor.GOLD,
            MasteryColor.GOLD,
        ]

    def test_empty(self):
        assert card_colors([]) == []


def _record(number: int, minutes: int, chapter_id=None, section_id=None) -> QuestionRecord:
    return QuestionRecord(
        question_id=f"q-{chapter_id or section_id}-{number}",
        question_number=number,
        chapter_id=chapter_id,
        section_id=section_id,
        attempts=[
            Attempt(
                round=1,
                result=AttemptResult.CORRECT,
                answered_at=BASE + timedelta(minutes=minutes),
            )
        ],
    )


class TestRecentStudyItems:
    """Tests for recent_study_items."""

    def test_newest_first_and_limited(self):
        chapters = [
            Chapter(
                chapter_id=f"c{n}",
                quiz_book_id="b1",
                chapter_number=n,
                questions=[_record(1, minutes=n, chapter_id=f"c{n}")],
            )
            for n in range(1, 5)
        ]
        book = QuizBook(quiz_book_id="b1", owner_id="u", title="Book", chapters=chapters)

        items = recent_study_items([book], limit=3)

        assert [i.chapter_number for i in items] == [4, 3, 2]
        assert all(i.kind == "chapter" for i in items)

    def test_latest_question_within_chapter(self):
        chapter = Chapter(
            chapter_id="c1",
            quiz_book_id="b1",
            chapter_number=1,
            questions=[
                _record(1, minutes=5, chapter_id="c1"),
                _record(2, minutes=9, chapter_id="c1"),
                _record(3, minutes=1, chapter_id="c1"),
            ],
        )
        book = QuizBook(quiz_book_id="b1", owner_id="u", title="Book", chapters=[chapter])

        [item] = recent_study_items([book])

        assert item.last_question_number == 2
        assert item.last_answered_at == BASE + timedelta(minutes=9)

    def test_sections_reported_when_book_uses_sections(self):
        section = Section(
            section_id="s1",
            chapter_id="c1",
            section_number=2,
            questions=[_record(7, minutes=3, section_id="s1")],
        )
        chapter = Chapter(
            chapter_id="c1", quiz_book_id="b1", chapter_number=1, sections=[section]
        )
        book = QuizBook(
            quiz_book_id="b1",
            owner_id="u",
            title="Book",
            use_sections=SectionMode.WITH_SECTIONS,
            chapters=[chapter],
        )

        [item] = recent_study_items([book])

        assert item.kind == "section"
        assert item.section_number == 2
        assert item.last_question_number == 7

    def test_unanswered_chapters_skipped(self):
        book = QuizBook(
            quiz_book_id="b1",
            owner_id="u",
            title="Book",
            chapters=[Chapter(chapter_id="c1", quiz_book_id="b1", chapter_number=1)],
        )
        assert recent_study_items([book]) == []
