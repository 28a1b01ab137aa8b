"""Quiz book data model.

Tree owned top-down: QuizBook -> Chapter -> (Section) -> QuestionRecord -> Attempt.
Nothing holds a back-reference; readers only walk downward.

JSON shape of an attempt history (question_records.attempts column):
    [{"round": 1, "result": "○", "confirmed": true, "answered_at": "..."}]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from quiztrack.core.errors import InvalidContainerError

# =============================================================================
# ENUMS
# =============================================================================


class AttemptResult(str, Enum):
    """Outcome of one attempt, stored as the ○/× symbols."""

    CORRECT = "○"
    INCORRECT = "×"

    @property
    def is_correct(self) -> bool:
        return self is AttemptResult.CORRECT

    @classmethod
    def parse(cls, value: str | bool | AttemptResult) -> AttemptResult:
        """Parse a result from a symbol, a word or a boolean.

        Accepts "○"/"×", "o"/"x", "correct"/"incorrect", True/False.
        """
        if isinstance(value, AttemptResult):
            return value
        if isinstance(value, bool):
            return cls.CORRECT if value else cls.INCORRECT

        normalized = value.strip().lower()
        if normalized in ("○", "o", "correct", "ok", "1"):
            return cls.CORRECT
        if normalized in ("×", "x", "incorrect", "ng", "0"):
            return cls.INCORRECT
        raise ValueError(f"Unknown attempt result: {value!r}")


class SectionMode(str, Enum):
    """Whether a quiz book subdivides its chapters into sections."""

    NOT_DECIDED = "not_decided"
    WITHOUT_SECTIONS = "without_sections"
    WITH_SECTIONS = "with_sections"

    @classmethod
    def from_flag(cls, flag: bool | None) -> SectionMode:
        """Map the legacy nullable boolean onto the three states."""
        if flag is None:
            return cls.NOT_DECIDED
        return cls.WITH_SECTIONS if flag else cls.WITHOUT_SECTIONS


# =============================================================================
# DATA CLASSES
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so all attempts compare with each other."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    # fromisoformat only learned the "Z" suffix in 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


@dataclass
class Attempt:
    """One recorded answer to one question on one round."""

    round: int
    result: AttemptResult
    confirmed: bool = True
    answered_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.answered_at = as_utc(self.answered_at)

    @property
    def is_correct(self) -> bool:
        return self.result.is_correct

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "round": self.round,
            "result": self.result.value,
            "confirmed": self.confirmed,
            "answered_at": self.answered_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attempt:
        # "resultConfirmFlg" is the key used by exports of the mobile app
        confirmed = data.get("confirmed", data.get("resultConfirmFlg", True))
        answered_at = data.get("answered_at", data.get("answeredAt"))
        return cls(
            round=int(data["round"]),
            result=AttemptResult.parse(data["result"]),
            confirmed=bool(confirmed),
            answered_at=_parse_timestamp(answered_at) if answered_at else utc_now(),
        )


@dataclass(frozen=True)
class ContainerRef:
    """Target of a question: exactly one of a chapter or a section."""

    chapter_id: str | None = None
    section_id: str | None = None

    def __post_init__(self) -> None:
        if (self.chapter_id is None) == (self.section_id is None):
            raise InvalidContainerError(
                "Exactly one of chapter_id or section_id must be given "
                f"(chapter_id={self.chapter_id!r}, section_id={self.section_id!r})"
            )

    @classmethod
    def for_chapter(cls, chapter_id: str) -> ContainerRef:
        return cls(chapter_id=chapter_id)

    @classmethod
    def for_section(cls, section_id: str) -> ContainerRef:
        return cls(section_id=section_id)

    @property
    def is_section(self) -> bool:
        return self.section_id is not None

    @property
    def kind(self) -> str:
        return "section" if self.is_section else "chapter"

    @property
    def id(self) -> str:
        return self.section_id if self.section_id is not None else self.chapter_id  # type: ignore[return-value]

    def __str__(self) -> str:
        return f"{self.kind}:{self.id}"


@dataclass
class QuestionRecord:
    """Attempt history for one question number inside one container."""

    question_id: str
    question_number: int
    chapter_id: str | None = None
    section_id: str | None = None
    attempts: list[Attempt] = field(default_factory=list)
    memo: str | None = None
    bookmarked: bool = False

    @property
    def container(self) -> ContainerRef:
        return ContainerRef(chapter_id=self.chapter_id, section_id=self.section_id)

    def confirmed_attempts(self) -> list[Attempt]:
        """Confirmed attempts in insertion order."""
        return [a for a in self.attempts if a.confirmed]

    def attempts_json(self) -> list[dict[str, Any]]:
        return [a.to_dict() for a in self.attempts]


@dataclass
class Section:
    """Subdivision of a chapter; owns its own question records."""

    section_id: str
    chapter_id: str
    section_number: int
    question_count: int = 0
    title: str | None = None
    questions: list[QuestionRecord] = field(default_factory=list)


@dataclass
class Chapter:
    """Chapter of a quiz book, with direct questions or with sections."""

    chapter_id: str
    quiz_book_id: str
    chapter_number: int
    question_count: int | None = None
    title: str | None = None
    sections: list[Section] = field(default_factory=list)
    questions: list[QuestionRecord] = field(default_factory=list)

    @property
    def has_sections(self) -> bool:
        return len(self.sections) > 0


@dataclass
class QuizBook:
    """Root of the tree.

    current_round is the last round the learner completed. It is managed by
    the learner and is independent of any question's own round counter.
    """

    quiz_book_id: str
    owner_id: str
    title: str
    current_round: int = 0
    use_sections: SectionMode = SectionMode.NOT_DECIDED
    chapters: list[Chapter] = field(default_factory=list)

    @property
    def display_round(self) -> int:
        """Round the learner is working through right now."""
        return self.current_round + 1

    def find_chapter(self, chapter_id: str) -> Chapter | None:
        for chapter in self.chapters:
            if chapter.chapter_id == chapter_id:
                return chapter
        return None

    def find_section(self, section_id: str) -> Section | None:
        for chapter in self.chapters:
            for section in chapter.sections:
                if section.section_id == section_id:
                    return section
        return None
