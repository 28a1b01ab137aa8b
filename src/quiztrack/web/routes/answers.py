"""Answer endpoints: record, retract, delete, confirm and notes."""

from typing import Literal

from fastapi import APIRouter, HTTPException, status

from quiztrack.core.models import Attempt, AttemptResult, ContainerRef
from quiztrack.web.dependencies import EngineDep
from quiztrack.web.schemas import (
    AnswerCreate,
    AnswerResponse,
    NotesResponse,
    NotesUpdate,
    QuestionDeleteResponse,
)

router = APIRouter(prefix="/api/answers", tags=["answers"])

ContainerType = Literal["chapter", "section"]


def _container(container_type: ContainerType, container_id: str) -> ContainerRef:
    if container_type == "section":
        return ContainerRef.for_section(container_id)
    return ContainerRef.for_chapter(container_id)


def _answer_response(
    container: ContainerRef, question_number: int, attempt: Attempt
) -> AnswerResponse:
    return AnswerResponse(
        container_type=container.kind,
        container_id=container.id,
        question_number=question_number,
        round=attempt.round,
        result=attempt.result.value,
        answered_at=attempt.answered_at.isoformat(),
    )


@router.post("", response_model=AnswerResponse, status_code=status.HTTP_201_CREATED)
async def record_answer(body: AnswerCreate, engine: EngineDep) -> AnswerResponse:
    """Record an answer with the question's next round."""
    try:
        result = AttemptResult.parse(body.result)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    container = ContainerRef(chapter_id=body.chapter_id, section_id=body.section_id)
    attempt = engine.record_attempt(container, body.question_number, result)
    return _answer_response(container, body.question_number, attempt)


@router.delete(
    "/{container_type}/{container_id}/{question_number}/latest",
    response_model=AnswerResponse,
)
async def retract_answer(
    container_type: ContainerType,
    container_id: str,
    question_number: int,
    engine: EngineDep,
) -> AnswerResponse:
    """Retract the latest answer of a question."""
    container = _container(container_type, container_id)
    removed = engine.retract_latest_attempt(container, question_number)
    return _answer_response(container, question_number, removed)


@router.delete(
    "/{container_type}/{container_id}/{question_number}",
    response_model=QuestionDeleteResponse,
)
async def delete_answers(
    container_type: ContainerType,
    container_id: str,
    question_number: int,
    engine: EngineDep,
) -> QuestionDeleteResponse:
    """Delete every answer of a question."""
    container = _container(container_type, container_id)
    deleted = engine.delete_question(container, question_number)
    return QuestionDeleteResponse(
        container_type=container.kind,
        container_id=container.id,
        question_number=question_number,
        attempts_deleted=deleted,
    )


@router.post(
    "/{container_type}/{container_id}/{question_number}/rounds/{round_number}/confirm",
    response_model=AnswerResponse,
)
async def confirm_answer(
    container_type: ContainerType,
    container_id: str,
    question_number: int,
    round_number: int,
    engine: EngineDep,
) -> AnswerResponse:
    """Confirm a draft answer."""
    container = _container(container_type, container_id)
    attempt = engine.confirm_attempt(container, question_number, round_number)
    return _answer_response(container, question_number, attempt)


@router.patch(
    "/{container_type}/{container_id}/{question_number}/notes",
    response_model=NotesResponse,
)
async def update_notes(
    container_type: ContainerType,
    container_id: str,
    question_number: int,
    body: NotesUpdate,
    engine: EngineDep,
) -> NotesResponse:
    """Edit memo and/or bookmark of an answered question."""
    container = _container(container_type, container_id)
    record = engine.update_question_notes(
        container, question_number, memo=body.memo, bookmarked=body.bookmarked
    )
    return NotesResponse(
        question_number=record.question_number,
        memo=record.memo,
        bookmarked=record.bookmarked,
    )
