"""Study record endpoints."""

from fastapi import APIRouter, Query

from quiztrack.db.study_records_repository import get_recent_records
from quiztrack.web.dependencies import DbPathDep, EngineDep, OwnerDep
from quiztrack.web.schemas import (
    RecentStudyItemResponse,
    RecentStudyItemsResponse,
    StudyRecordListResponse,
    StudyRecordResponse,
)

router = APIRouter(prefix="/api/study-records", tags=["study-records"])


@router.get("", response_model=StudyRecordListResponse)
async def list_study_records(
    db_path: DbPathDep,
    owner_id: OwnerDep,
    limit: int = Query(10, ge=1, le=100),
) -> StudyRecordListResponse:
    """Newest entries of the study log across the owner's quiz books."""
    records = [
        StudyRecordResponse(
            record_id=r.record_id,
            quiz_book_id=r.quiz_book_id,
            chapter_id=r.chapter_id,
            section_id=r.section_id,
            question_number=r.question_number,
            result=r.result.value,
            round=r.round,
            answered_at=r.answered_at,
        )
        for r in get_recent_records(owner_id, limit=limit, db_path=db_path)
    ]
    return StudyRecordListResponse(records=records, count=len(records))


@router.get("/recent", response_model=RecentStudyItemsResponse)
async def list_recent(
    engine: EngineDep,
    owner_id: OwnerDep,
    limit: int | None = Query(None, ge=1, le=50),
) -> RecentStudyItemsResponse:
    """Chapters and sections studied most recently, newest first."""
    items = [
        RecentStudyItemResponse(
            quiz_book_id=item.quiz_book_id,
            quiz_book_title=item.quiz_book_title,
            kind=item.kind,
            chapter_id=item.chapter_id,
            chapter_number=item.chapter_number,
            section_id=item.section_id,
            section_number=item.section_number,
            last_question_number=item.last_question_number,
            last_result=item.last_result.value,
            last_answered_at=item.last_answered_at.isoformat(),
        )
        for item in engine.get_recent_study_items(owner_id, limit=limit)
    ]
    return RecentStudyItemsResponse(items=items, count=len(items))
