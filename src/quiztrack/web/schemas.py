"""Pydantic schemas for the Web API.

Serialization models for quiz book trees, answers and analytics.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# QUIZ BOOK TREE
# =============================================================================


class AttemptResponse(BaseModel):
    """One attempt of a question."""

    round: int
    result: str
    confirmed: bool
    answered_at: str
    color: str | None = None


class QuestionResponse(BaseModel):
    """A question record with its history."""

    question_id: str
    question_number: int
    attempts: list[AttemptResponse]
    memo: str | None = None
    bookmarked: bool = False
    color: str


class SectionResponse(BaseModel):
    section_id: str
    section_number: int
    title: str | None = None
    question_count: int
    questions: list[QuestionResponse]


class ChapterResponse(BaseModel):
    chapter_id: str
    chapter_number: int
    title: str | None = None
    question_count: int | None = None
    correct_rate: int
    sections: list[SectionResponse]
    questions: list[QuestionResponse]


class QuizBookResponse(BaseModel):
    """A quiz book with its full tree and the rates of the round in progress."""

    quiz_book_id: str
    title: str
    current_round: int
    display_round: int
    use_sections: str
    chapters: list[ChapterResponse]


# =============================================================================
# ANSWERS
# =============================================================================


class AnswerCreate(BaseModel):
    """Request body for recording an answer.

    Exactly one of chapter_id and section_id must be given.
    """

    chapter_id: str | None = None
    section_id: str | None = None
    question_number: int = Field(..., ge=1)
    result: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _one_container(self) -> AnswerCreate:
        if (self.chapter_id is None) == (self.section_id is None):
            raise ValueError("exactly one of chapter_id or section_id is required")
        return self


class AnswerResponse(BaseModel):
    """Attempt recorded or removed."""

    container_type: Literal["chapter", "section"]
    container_id: str
    question_number: int
    round: int
    result: str
    answered_at: str


class NotesUpdate(BaseModel):
    """Request body for editing memo and bookmark; omitted fields are kept."""

    memo: str | None = Field(default=None, max_length=2000)
    bookmarked: bool | None = None


class NotesResponse(BaseModel):
    question_number: int
    memo: str | None = None
    bookmarked: bool


class QuestionDeleteResponse(BaseModel):
    container_type: Literal["chapter", "section"]
    container_id: str
    question_number: int
    attempts_deleted: int


# =============================================================================
# ANALYTICS
# =============================================================================


class ChapterRateResponse(BaseModel):
    chapter_id: str
    round: int
    correct_rate: int


class RoundStatsResponse(BaseModel):
    round: int
    total_questions: int
    correct_answers: int
    correct_rate: float


class ChapterStatsResponse(RoundStatsResponse):
    chapter_id: str
    chapter_number: int


class SectionStatsResponse(RoundStatsResponse):
    section_id: str
    chapter_id: str
    section_number: int


class RoundQuestionResponse(BaseModel):
    question_number: int
    result: str
    answered_at: str


class RoundQuestionListResponse(BaseModel):
    """Questions of one chapter or section answered in one round."""

    round: int
    total: int
    correct: int
    correct_rate: int
    questions: list[RoundQuestionResponse]


class AnalyticsResponse(BaseModel):
    """Per-round, per-chapter and per-section statistics of a quiz book."""

    quiz_book_id: str
    total_rounds: int
    round_stats: list[RoundStatsResponse]
    chapter_stats: list[ChapterStatsResponse]
    section_stats: list[SectionStatsResponse]


# =============================================================================
# STUDY RECORDS
# =============================================================================


class RecentStudyItemResponse(BaseModel):
    quiz_book_id: str
    quiz_book_title: str
    kind: Literal["chapter", "section"]
    chapter_id: str
    chapter_number: int
    section_id: str | None = None
    section_number: int | None = None
    last_question_number: int
    last_result: str
    last_answered_at: str


class RecentStudyItemsResponse(BaseModel):
    items: list[RecentStudyItemResponse]
    count: int


class StudyRecordResponse(BaseModel):
    """One entry of the study log."""

    record_id: str
    quiz_book_id: str
    chapter_id: str
    section_id: str | None = None
    question_number: int
    result: str
    round: int
    answered_at: str


class StudyRecordListResponse(BaseModel):
    records: list[StudyRecordResponse]
    count: int
