"""Attempt tracking engine.

Inbound surface used by the CLI and the web API. Callers pass already
authorized identifiers; the engine delegates storage to a QuizBookStore
and study-history logging to a StudyActivitySink.
"""

from __future__ import annotations

from pathlib import Path

from quiztrack.config.app_config import load_app_config
from quiztrack.core import attempt_recorder, progress
from quiztrack.core.attempt_recorder import QuizBookStore, StudyActivitySink
from quiztrack.core.errors import NotFoundError
from quiztrack.core.mastery import (
    MasteryColor,
    RecentStudyItem,
    question_color,
    recent_study_items,
)
from quiztrack.core.models import (
    Attempt,
    AttemptResult,
    ContainerRef,
    QuestionRecord,
    QuizBook,
)
from quiztrack.core.progress import QuizBookAnalytics, RoundQuestionList


def container_ref(chapter_id: str | None = None, section_id: str | None = None) -> ContainerRef:
    """Build a container reference; exactly one id must be given."""
    return ContainerRef(chapter_id=chapter_id, section_id=section_id)


class QuizTrackEngine:
    """Records attempts and computes progress for quiz books."""

    def __init__(
        self,
        store: QuizBookStore | None = None,
        activity_sink: StudyActivitySink | None = None,
        db_path: Path | None = None,
    ):
        if store is None or activity_sink is None:
            from quiztrack.db.quiz_books_repository import SqliteQuizBookStore
            from quiztrack.db.study_records_repository import SqliteStudyRecordSink

            store = store or SqliteQuizBookStore(db_path)
            activity_sink = activity_sink or SqliteStudyRecordSink(db_path)
        self.store = store
        self.activity_sink = activity_sink

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def record_attempt(
        self,
        container: ContainerRef,
        question_number: int,
        result: AttemptResult | str | bool,
    ) -> Attempt:
        return attempt_recorder.record_attempt(
            self.store,
            container,
            question_number,
            result,
            activity_sink=self.activity_sink,
        )

    def retract_latest_attempt(self, container: ContainerRef, question_number: int) -> Attempt:
        return attempt_recorder.retract_latest_attempt(self.store, container, question_number)

    def delete_question(self, container: ContainerRef, question_number: int) -> int:
        return attempt_recorder.delete_question(self.store, container, question_number)

    def confirm_attempt(
        self, container: ContainerRef, question_number: int, round_number: int
    ) -> Attempt:
        return attempt_recorder.confirm_attempt(
            self.store, container, question_number, round_number
        )

    def update_question_notes(
        self,
        container: ContainerRef,
        question_number: int,
        memo: str | None = None,
        bookmarked: bool | None = None,
    ) -> QuestionRecord:
        return attempt_recorder.update_question_notes(
            self.store, container, question_number, memo=memo, bookmarked=bookmarked
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_quiz_book(self, quiz_book_id: str, owner_id: str) -> QuizBook:
        return self.store.load_tree(quiz_book_id, owner_id)

    def get_chapter_rate(
        self,
        quiz_book_id: str,
        owner_id: str,
        chapter_id: str,
        round_number: int | None = None,
    ) -> int:
        """Chapter rate for a round; defaults to the round in progress.

        Raises:
            NotFoundError: If the book or chapter does not exist
        """
        book = self.store.load_tree(quiz_book_id, owner_id)
        chapter = book.find_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("Chapter", chapter_id)

        if round_number is None:
            round_number = book.display_round
        return progress.chapter_rate(chapter, round_number)

    def get_analytics(self, quiz_book_id: str, owner_id: str) -> QuizBookAnalytics:
        book = self.store.load_tree(quiz_book_id, owner_id)
        return progress.analyze(book)

    def _container_questions(
        self, quiz_book_id: str, owner_id: str, container: ContainerRef
    ) -> list[QuestionRecord]:
        book = self.store.load_tree(quiz_book_id, owner_id)
        if container.is_section:
            section = book.find_section(container.id)
            if section is None:
                raise NotFoundError("Section", container.id)
            return section.questions

        chapter = book.find_chapter(container.id)
        if chapter is None:
            raise NotFoundError("Chapter", container.id)
        return chapter.questions

    def get_round_questions(
        self,
        quiz_book_id: str,
        owner_id: str,
        container: ContainerRef,
        round_number: int,
    ) -> RoundQuestionList:
        """Questions of one chapter or section answered in a round.

        Raises:
            NotFoundError: If the container is not part of the book
        """
        questions = self._container_questions(quiz_book_id, owner_id, container)
        return progress.round_questions(questions, round_number)

    def get_question_colors(
        self, quiz_book_id: str, owner_id: str, container: ContainerRef
    ) -> dict[int, MasteryColor]:
        """Mastery colour per answered question number of a container."""
        questions = self._container_questions(quiz_book_id, owner_id, container)
        return {q.question_number: question_color(q.attempts) for q in questions}

    def get_recent_study_items(
        self, owner_id: str, limit: int | None = None
    ) -> list[RecentStudyItem]:
        if limit is None:
            limit = load_app_config().study_records.recent_items_limit
        return recent_study_items(self.store.load_trees(owner_id), limit=limit)
