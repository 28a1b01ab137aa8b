"""Round resolution for per-question attempt histories.

A question's round counter is derived from its own confirmed history only:
the k-th confirmed attempt carries round k. It is unrelated to the quiz
book's current_round.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import structlog

from quiztrack.core.errors import InvariantViolationError
from quiztrack.core.models import Attempt, QuestionRecord

logger = structlog.get_logger(__name__)


def next_round(attempts: Iterable[Attempt]) -> int:
    """Round number for the next attempt: confirmed history length + 1."""
    return sum(1 for a in attempts if a.confirmed) + 1


def attempt_at_round(attempts: Iterable[Attempt], round_number: int) -> Attempt | None:
    """Return the confirmed attempt recorded at round_number, if any."""
    for attempt in attempts:
        if attempt.confirmed and attempt.round == round_number:
            return attempt
    return None


def find_round_gap(attempts: Sequence[Attempt]) -> tuple[int, int] | None:
    """Find the first confirmed attempt out of sequence.

    Returns:
        (expected_round, actual_round) for the first mismatch, or None
    """
    expected = 1
    for attempt in attempts:
        if not attempt.confirmed:
            continue
        if attempt.round != expected:
            return expected, attempt.round
        expected += 1
    return None


def check_round_sequence(record: QuestionRecord) -> None:
    """Reject a question whose confirmed rounds are not exactly 1..N.

    Raises:
        InvariantViolationError: If a confirmed attempt is out of sequence
    """
    gap = find_round_gap(record.attempts)
    if gap is None:
        return

    expected, actual = gap
    logger.error(
        "round_sequence.invariant_violation",
        question_id=record.question_id,
        container=str(record.container),
        question_number=record.question_number,
        expected_round=expected,
        actual_round=actual,
        rounds=[a.round for a in record.attempts],
    )
    raise InvariantViolationError(
        f"Question {record.question_number} in {record.container}: "
        f"confirmed attempt has round {actual}, expected {expected}"
    )
