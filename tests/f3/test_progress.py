"""Tests for chapter rates and book analytics."""

import pytest

from quiztrack.core.errors import InvariantViolationError
from quiztrack.core.models import (
    Attempt,
    AttemptResult,
    Chapter,
    QuestionRecord,
    QuizBook,
    Section,
)
from quiztrack.core.progress import (
    QuestionEntry,
    analyze,
    chapter_rate,
    chapter_stats,
    flatten_questions,
    percent,
    percent_one_decimal,
    round_questions,
    round_stats,
)


def make_record(
    question_number: int,
    pattern: str,
    chapter_id: str | None = None,
    section_id: str | None = None,
) -> QuestionRecord:
    """Record whose confirmed history follows pattern ("o" correct, "x" incorrect)."""
    return QuestionRecord(
        question_id=f"{chapter_id or section_id}-{question_number}",
        question_number=question_number,
        chapter_id=chapter_id,
        section_id=section_id,
        attempts=[
            Attempt(
                round=i + 1,
                result=AttemptResult.CORRECT if c == "o" else AttemptResult.INCORRECT,
            )
            for i, c in enumerate(pattern)
        ],
    )


def _chapter(chapter_id="c1", number=1, questions=(), sections=()) -> Chapter:
    return Chapter(
        chapter_id=chapter_id,
        quiz_book_id="b1",
        chapter_number=number,
        questions=list(questions),
        sections=list(sections),
    )


def _section(section_id, number, chapter_id, questions=()) -> Section:
    return Section(
        section_id=section_id,
        chapter_id=chapter_id,
        section_number=number,
        questions=list(questions),
    )


def _book(*chapters) -> QuizBook:
    return QuizBook(quiz_book_id="b1", owner_id="u1", title="Book", chapters=list(chapters))


class TestRounding:
    """Half-up rounding with exact integer arithmetic."""

    @pytest.mark.parametrize(
        "correct,total,expected",
        [(0, 0, 0), (2, 3, 67), (1, 3, 33), (1, 8, 13), (1, 200, 1), (3, 3, 100), (0, 5, 0)],
    )
    def test_percent(self, correct, total, expected):
        assert percent(correct, total) == expected

    @pytest.mark.parametrize(
        "correct,total,expected",
        [(0, 0, 0.0), (2, 3, 66.7), (1, 3, 33.3), (1, 16, 6.3), (2, 2, 100.0), (1, 7, 14.3)],
    )
    def test_percent_one_decimal(self, correct, total, expected):
        assert percent_one_decimal(correct, total) == expected


class TestChapterRate:
    """Tests for chapter_rate."""

    def test_two_of_three_is_67(self):
        chapter = _chapter(
            questions=[
                make_record(1, "o", chapter_id="c1"),
                make_record(2, "x", chapter_id="c1"),
                make_record(3, "o", chapter_id="c1"),
            ]
        )
        assert chapter_rate(chapter, 1) == 67

    def test_only_questions_answered_at_round_count(self):
        chapter = _chapter(
            questions=[
                make_record(1, "oo", chapter_id="c1"),
                make_record(2, "xo", chapter_id="c1"),
                make_record(3, "x", chapter_id="c1"),
            ]
        )
        assert chapter_rate(chapter, 2) == 100

    def test_empty_chapter_is_zero(self):
        assert chapter_rate(_chapter(), 1) == 0
        assert chapter_rate(_chapter(), 7) == 0

    def test_round_without_answers_is_zero(self):
        chapter = _chapter(questions=[make_record(1, "o", chapter_id="c1")])
        assert chapter_rate(chapter, 2) == 0

    def test_sections_take_precedence(self):
        """Direct chapter records never change the rate of a sectioned chapter."""
        section = _section(
            "s1",
            1,
            "c1",
            questions=[make_record(1, "o", section_id="s1"), make_record(2, "x", section_id="s1")],
        )
        without_direct = _chapter(sections=[section])
        with_direct = _chapter(
            sections=[section],
            questions=[make_record(9, "o", chapter_id="c1"), make_record(10, "o", chapter_id="c1")],
        )

        assert chapter_rate(without_direct, 1) == 50
        assert chapter_rate(with_direct, 1) == 50

    def test_empty_sections_ignore_direct_records(self):
        chapter = _chapter(
            sections=[_section("s1", 1, "c1")],
            questions=[make_record(1, "o", chapter_id="c1")],
        )
        assert chapter_rate(chapter, 1) == 0

    def test_drafts_ignored(self):
        record = make_record(1, "x", chapter_id="c1")
        record.attempts.append(
            Attempt(round=2, result=AttemptResult.CORRECT, confirmed=False)
        )
        chapter = _chapter(questions=[record, make_record(2, "xx", chapter_id="c1")])

        assert chapter_rate(chapter, 2) == 0

    def test_corrupt_history_rejected(self):
        record = make_record(1, "o", chapter_id="c1")
        record.attempts[0].round = 3
        with pytest.raises(InvariantViolationError):
            chapter_rate(_chapter(questions=[record]), 1)


class TestRoundStats:
    """Tests for round_stats and analyze."""

    def test_scenario_two_rounds(self):
        chapter = _chapter(
            questions=[
                make_record(1, "oo", chapter_id="c1"),
                make_record(2, "xo", chapter_id="c1"),
                make_record(3, "o", chapter_id="c1"),
            ]
        )

        result = analyze(_book(chapter))

        assert result.total_rounds == 2
        assert [s.to_dict() for s in result.round_stats] == [
            {"round": 1, "total_questions": 3, "correct_answers": 2, "correct_rate": 66.7},
            {"round": 2, "total_questions": 2, "correct_answers": 2, "correct_rate": 100.0},
        ]

    def test_empty_book(self):
        result = analyze(_book(_chapter()))

        assert result.total_rounds == 0
        assert result.round_stats == []
        assert result.chapter_stats == []
        assert result.section_stats == []

    def test_round_stats_complete_chapter_stats_sparse(self):
        """Book-level rounds are all emitted; per-chapter rounds without answers are not."""
        c1 = _chapter(
            "c1",
            1,
            questions=[make_record(1, "ooo", chapter_id="c1")],
        )
        c2 = _chapter(
            "c2",
            2,
            questions=[make_record(1, "o", chapter_id="c2")],
        )
        # c2's only question answered at round 1; c1 covers rounds 1..3
        result = analyze(_book(c1, c2))

        assert [s.round for s in result.round_stats] == [1, 2, 3]
        c2_rounds = [s.round for s in result.chapter_stats if s.chapter_id == "c2"]
        assert c2_rounds == [1]

    def test_chapter_answered_at_rounds_one_and_three(self):
        """A chapter gap at round 2 is omitted while the book row for round 2 stays."""
        c1 = _chapter("c1", 1)
        c2 = _chapter("c2", 2)
        entries = [
            QuestionEntry("c1", 1, 1, results={1: True, 2: True, 3: False}),
            QuestionEntry("c2", 2, 1, results={1: False}),
            QuestionEntry("c2", 2, 2, results={3: True}),
        ]

        rounds = round_stats(entries)
        per_chapter = chapter_stats(entries, 3, [c1, c2])

        assert [s.round for s in rounds] == [1, 2, 3]
        assert [(s.round, s.total_questions) for s in rounds] == [(1, 2), (2, 1), (3, 2)]
        assert [s.round for s in per_chapter if s.chapter_id == "c2"] == [1, 3]
        assert [s.round for s in per_chapter if s.chapter_id == "c1"] == [1, 2, 3]

    def test_chapter_stats_ordered_by_round_then_number(self):
        c2 = _chapter("c2", 2, questions=[make_record(1, "oo", chapter_id="c2")])
        c1 = _chapter("c1", 1, questions=[make_record(1, "xo", chapter_id="c1")])

        result = analyze(_book(c2, c1))

        assert [(s.round, s.chapter_number) for s in result.chapter_stats] == [
            (1, 1),
            (1, 2),
            (2, 1),
            (2, 2),
        ]
        first = result.chapter_stats[0]
        assert (first.total_questions, first.correct_answers, first.correct_rate) == (1, 0, 0.0)

    def test_section_stats(self):
        s1 = _section("s1", 1, "c1", questions=[make_record(1, "o", section_id="s1")])
        s2 = _section(
            "s2",
            2,
            "c1",
            questions=[make_record(1, "xo", section_id="s2"), make_record(2, "o", section_id="s2")],
        )
        chapter = _chapter("c1", 1, sections=[s2, s1])

        result = analyze(_book(chapter))

        assert [s.to_dict() for s in result.section_stats] == [
            {
                "round": 1,
                "section_id": "s1",
                "chapter_id": "c1",
                "section_number": 1,
                "total_questions": 1,
                "correct_answers": 1,
                "correct_rate": 100.0,
            },
            {
                "round": 1,
                "section_id": "s2",
                "chapter_id": "c1",
                "section_number": 2,
                "total_questions": 2,
                "correct_answers": 1,
                "correct_rate": 50.0,
            },
            {
                "round": 2,
                "section_id": "s2",
                "chapter_id": "c1",
                "section_number": 2,
                "total_questions": 1,
                "correct_answers": 1,
                "correct_rate": 100.0,
            },
        ]
        # section-owned records count towards their chapter too
        assert [(s.round, s.total_questions) for s in result.chapter_stats] == [(1, 3), (2, 1)]

    def test_round_stats_pool_includes_sections_and_direct(self):
        section = _section("s1", 1, "c1", questions=[make_record(1, "o", section_id="s1")])
        chapter = _chapter(
            "c1", 1, sections=[section], questions=[make_record(1, "x", chapter_id="c1")]
        )

        stats = round_stats(flatten_questions(_book(chapter)))

        assert [(s.total_questions, s.correct_answers) for s in stats] == [(2, 1)]

    def test_analytics_to_dict(self):
        result = analyze(_book(_chapter(questions=[make_record(1, "o", chapter_id="c1")])))
        data = result.to_dict()

        assert data["quiz_book_id"] == "b1"
        assert data["total_rounds"] == 1
        assert data["chapter_stats"][0]["chapter_number"] == 1
        assert data["section_stats"] == []


class TestRoundQuestions:
    def test_lists_answers_of_one_round(self):
        questions = [
            make_record(3, "ox", chapter_id="c1"),
            make_record(1, "oo", chapter_id="c1"),
            make_record(2, "o", chapter_id="c1"),
        ]

        listing = round_questions(questions, 2)

        assert [q.question_number for q in listing.questions] == [1, 3]
        assert listing.total == 2
        assert listing.correct == 1
        assert listing.rate == 50

    def test_empty_round(self):
        listing = round_questions([make_record(1, "o", chapter_id="c1")], 4)
        assert listing.questions == []
        assert listing.rate == 0
