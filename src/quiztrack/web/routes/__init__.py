"""Route handlers for the Web API."""

from quiztrack.web.routes.health import router as health_router
from quiztrack.web.routes.quiz_books import router as quiz_books_router
from quiztrack.web.routes.answers import router as answers_router
from quiztrack.web.routes.study_records import router as study_records_router

__all__ = [
    "health_router",
    "quiz_books_router",
    "answers_router",
    "study_records_router",
]
