"""Quiz book endpoints: tree, chapter rate, analytics and round lists."""

from fastapi import APIRouter, HTTPException, Query, status

from quiztrack.core.errors import InvalidContainerError
from quiztrack.core.mastery import card_colors, question_color
from quiztrack.core.models import ContainerRef, QuestionRecord
from quiztrack.core.progress import chapter_rate
from quiztrack.web.dependencies import EngineDep, OwnerDep
from quiztrack.web.schemas import (
    AnalyticsResponse,
    AttemptResponse,
    ChapterRateResponse,
    ChapterResponse,
    QuestionResponse,
    QuizBookResponse,
    RoundQuestionListResponse,
    RoundQuestionResponse,
    SectionResponse,
)

router = APIRouter(prefix="/api/quiz-books", tags=["quiz-books"])


def _attempt_responses(record: QuestionRecord) -> list[AttemptResponse]:
    # card colours cover confirmed attempts only; drafts have none
    colors = iter(card_colors(record.attempts))
    return [
        AttemptResponse(
            **attempt.to_dict(),
            color=next(colors).value if attempt.confirmed else None,
        )
        for attempt in record.attempts
    ]


def _question_response(record: QuestionRecord) -> QuestionResponse:
    return QuestionResponse(
        question_id=record.question_id,
        question_number=record.question_number,
        attempts=_attempt_responses(record),
        memo=record.memo,
        bookmarked=record.bookmarked,
        color=question_color(record.attempts).value,
    )


@router.get("/{quiz_book_id}", response_model=QuizBookResponse)
async def get_quiz_book(
    quiz_book_id: str, engine: EngineDep, owner_id: OwnerDep
) -> QuizBookResponse:
    """Get a quiz book tree with each chapter's rate for the round in progress."""
    book = engine.get_quiz_book(quiz_book_id, owner_id)
    round_number = book.display_round

    chapters = [
        ChapterResponse(
            chapter_id=chapter.chapter_id,
            chapter_number=chapter.chapter_number,
            title=chapter.title,
            question_count=chapter.question_count,
            correct_rate=chapter_rate(chapter, round_number),
            sections=[
                SectionResponse(
                    section_id=section.section_id,
                    section_number=section.section_number,
                    title=section.title,
                    question_count=section.question_count,
                    questions=[_question_response(q) for q in section.questions],
                )
                for section in chapter.sections
            ],
            questions=[_question_response(q) for q in chapter.questions],
        )
        for chapter in book.chapters
    ]

    return QuizBookResponse(
        quiz_book_id=book.quiz_book_id,
        title=book.title,
        current_round=book.current_round,
        display_round=round_number,
        use_sections=book.use_sections.value,
        chapters=chapters,
    )


@router.get("/{quiz_book_id}/chapters/{chapter_id}/rate", response_model=ChapterRateResponse)
async def get_chapter_rate(
    quiz_book_id: str,
    chapter_id: str,
    engine: EngineDep,
    owner_id: OwnerDep,
    round: int | None = Query(None, ge=1),
) -> ChapterRateResponse:
    """Correct rate of a chapter; defaults to the round in progress."""
    if round is None:
        round = engine.get_quiz_book(quiz_book_id, owner_id).display_round
    value = engine.get_chapter_rate(quiz_book_id, owner_id, chapter_id, round_number=round)
    return ChapterRateResponse(chapter_id=chapter_id, round=round, correct_rate=value)


@router.get("/{quiz_book_id}/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    quiz_book_id: str, engine: EngineDep, owner_id: OwnerDep
) -> AnalyticsResponse:
    """Per-round, per-chapter and per-section statistics."""
    result = engine.get_analytics(quiz_book_id, owner_id)
    return AnalyticsResponse(**result.to_dict())


@router.get("/{quiz_book_id}/round-questions", response_model=RoundQuestionListResponse)
async def get_round_questions(
    quiz_book_id: str,
    engine: EngineDep,
    owner_id: OwnerDep,
    round: int = Query(..., ge=1),
    chapter_id: str | None = None,
    section_id: str | None = None,
) -> RoundQuestionListResponse:
    """Questions of a chapter or section answered in one round."""
    try:
        container = ContainerRef(chapter_id=chapter_id, section_id=section_id)
    except InvalidContainerError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    listing = engine.get_round_questions(quiz_book_id, owner_id, container, round)
    return RoundQuestionListResponse(
        round=listing.round,
        total=listing.total,
        correct=listing.correct,
        correct_rate=listing.rate,
        questions=[
            RoundQuestionResponse(
                question_number=q.question_number,
                result=q.result.value,
                answered_at=q.answered_at.isoformat(),
            )
            for q in listing.questions
        ],
    )
