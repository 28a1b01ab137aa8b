"""Attempt recording module.

Responsibilities:
- Append attempts to a question's history with the next round number
- Retract the latest attempt, deleting the record once it is empty
- Delete a question's whole history
- Confirm draft attempts and edit memo/bookmark

Every mutation is a read-modify-write on one question's attempt list and
runs inside a single store transaction. The store must serialize
transactions touching the same question, otherwise two concurrent
recordings can both read the same history and assign the same round.
"""

from __future__ import annotations

import uuid
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import structlog

from quiztrack.core.errors import InvariantViolationError, NotFoundError
from quiztrack.core.models import (
    Attempt,
    AttemptResult,
    ContainerRef,
    QuestionRecord,
    QuizBook,
    as_utc,
    utc_now,
)
from quiztrack.core.rounds import check_round_sequence, find_round_gap, next_round

logger = structlog.get_logger(__name__)

# =============================================================================
# COLLABORATOR INTERFACES
# =============================================================================


@dataclass
class ContainerLocation:
    """Where a chapter or section sits in the tree."""

    owner_id: str
    quiz_book_id: str
    chapter_id: str
    section_id: str | None = None


@dataclass
class StudyActivity:
    """One entry for the study-history log."""

    owner_id: str
    quiz_book_id: str
    chapter_id: str
    question_number: int
    result: AttemptResult
    round: int
    answered_at: datetime
    section_id: str | None = None


class StoreTransaction(Protocol):
    """Unit of work bound to a single write transaction."""

    def resolve_container(self, container: ContainerRef) -> ContainerLocation: ...

    def get_question(
        self, container: ContainerRef, question_number: int
    ) -> QuestionRecord | None: ...

    def save_question(self, record: QuestionRecord) -> None: ...

    def delete_question(self, record: QuestionRecord) -> None: ...


class QuizBookStore(Protocol):
    """Persistence collaborator."""

    def transaction(self) -> AbstractContextManager[StoreTransaction]: ...

    def load_tree(self, quiz_book_id: str, owner_id: str) -> QuizBook: ...

    def load_trees(self, owner_id: str) -> list[QuizBook]: ...


class StudyActivitySink(Protocol):
    """Append-only study-history log; enforces its own retention."""

    def record_activity(self, activity: StudyActivity) -> None: ...


# =============================================================================
# HELPERS
# =============================================================================


def _validate_question_number(question_number: int) -> None:
    if question_number < 1:
        raise ValueError(f"question_number must be positive, got {question_number}")


def _require_question(
    tx: StoreTransaction, container: ContainerRef, question_number: int
) -> QuestionRecord:
    tx.resolve_container(container)
    record = tx.get_question(container, question_number)
    if record is None:
        raise NotFoundError("Question", f"{container}#{question_number}")
    return record


# =============================================================================
# MUTATIONS
# =============================================================================


def record_attempt(
    store: QuizBookStore,
    container: ContainerRef,
    question_number: int,
    result: AttemptResult | str | bool,
    activity_sink: StudyActivitySink | None = None,
    now: datetime | None = None,
) -> Attempt:
    """Append a confirmed attempt to a question's history.

    Creates the question record on first use. Chapter-scoped recordings are
    also reported to the study-history sink, once, after the write commits.

    Args:
        store: Persistence collaborator
        container: Chapter or section holding the question
        question_number: Question number within the container
        result: Outcome (symbol, word or boolean)
        activity_sink: Study-history log (optional)
        now: Timestamp override

    Returns:
        The new Attempt

    Raises:
        NotFoundError: If the container does not exist
        InvariantViolationError: If the stored history is already corrupt
    """
    _validate_question_number(question_number)
    result = AttemptResult.parse(result)

    with store.transaction() as tx:
        location = tx.resolve_container(container)
        record = tx.get_question(container, question_number)
        if record is None:
            record = QuestionRecord(
                question_id=str(uuid.uuid4()),
                question_number=question_number,
                chapter_id=container.chapter_id,
                section_id=container.section_id,
            )
        else:
            check_round_sequence(record)

        attempt = Attempt(
            round=next_round(record.attempts),
            result=result,
            confirmed=True,
            answered_at=as_utc(now) if now else utc_now(),
        )
        record.attempts.append(attempt)
        tx.save_question(record)

    logger.info(
        "attempt.recorded",
        container=str(container),
        question_number=question_number,
        round=attempt.round,
        result=result.value,
    )

    if activity_sink is not None and not container.is_section:
        activity_sink.record_activity(
            StudyActivity(
                owner_id=location.owner_id,
                quiz_book_id=location.quiz_book_id,
                chapter_id=location.chapter_id,
                question_number=question_number,
                result=result,
                round=attempt.round,
                answered_at=attempt.answered_at,
            )
        )

    return attempt


def retract_latest_attempt(
    store: QuizBookStore,
    container: ContainerRef,
    question_number: int,
) -> Attempt:
    """Remove the most recently recorded attempt.

    Remaining attempts keep their round numbers. A record left with no
    attempts is deleted. Not idempotent.

    Returns:
        The removed Attempt

    Raises:
        NotFoundError: If the question does not exist or has no attempts
    """
    with store.transaction() as tx:
        record = _require_question(tx, container, question_number)
        if not record.attempts:
            raise NotFoundError(
                "Attempt", f"{container}#{question_number}", "no attempts to retract"
            )

        removed = record.attempts.pop()
        if record.attempts:
            tx.save_question(record)
        else:
            tx.delete_question(record)

    logger.info(
        "attempt.retracted",
        container=str(container),
        question_number=question_number,
        round=removed.round,
        remaining=len(record.attempts),
    )
    return removed


def delete_question(
    store: QuizBookStore,
    container: ContainerRef,
    question_number: int,
) -> int:
    """Delete a question record and all of its attempts.

    Returns:
        Number of attempts deleted

    Raises:
        NotFoundError: If the question does not exist
    """
    with store.transaction() as tx:
        record = _require_question(tx, container, question_number)
        tx.delete_question(record)

    logger.info(
        "question.deleted",
        container=str(container),
        question_number=question_number,
        attempts_deleted=len(record.attempts),
    )
    return len(record.attempts)


def confirm_attempt(
    store: QuizBookStore,
    container: ContainerRef,
    question_number: int,
    round_number: int,
) -> Attempt:
    """Move a draft attempt to confirmed. No-op if already confirmed.

    Raises:
        NotFoundError: If the question or the round does not exist
        InvariantViolationError: If confirming would break round numbering
    """
    with store.transaction() as tx:
        record = _require_question(tx, container, question_number)
        target = next((a for a in record.attempts if a.round == round_number), None)
        if target is None:
            raise NotFoundError(
                "Attempt", f"{container}#{question_number}", f"round {round_number}"
            )
        if target.confirmed:
            return target

        target.confirmed = True
        gap = find_round_gap(record.attempts)
        if gap is not None:
            target.confirmed = False
            logger.error(
                "attempt.confirm_rejected",
                container=str(container),
                question_number=question_number,
                round=round_number,
                expected_round=gap[0],
            )
            raise InvariantViolationError(
                f"Confirming round {round_number} of question {question_number} "
                f"would break the round sequence (expected round {gap[0]})"
            )
        tx.save_question(record)

    logger.info(
        "attempt.confirmed",
        container=str(container),
        question_number=question_number,
        round=round_number,
    )
    return target


def update_question_notes(
    store: QuizBookStore,
    container: ContainerRef,
    question_number: int,
    memo: str | None = None,
    bookmarked: bool | None = None,
) -> QuestionRecord:
    """Update memo and/or bookmark of an existing question record.

    Raises:
        NotFoundError: If the question does not exist
    """
    with store.transaction() as tx:
        record = _require_question(tx, container, question_number)
        if memo is not None:
            record.memo = memo
        if bookmarked is not None:
            record.bookmarked = bookmarked
        tx.save_question(record)

    logger.debug(
        "question.notes_updated",
        container=str(container),
        question_number=question_number,
        memo_set=memo is not None,
        bookmarked=bookmarked,
    )
    return record
