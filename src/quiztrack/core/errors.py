"""Error taxonomy for the attempt tracking engine.

- NotFoundError: a referenced quiz book, chapter, section or question does
  not exist, or a retraction targets a question with no attempts.
- InvariantViolationError: stored data breaks the round numbering rule.
  Indicates upstream corruption and is never retried.
- InvalidContainerError: an attempt target names both a chapter and a
  section, or neither.
"""


class QuizTrackError(Exception):
    """Base class for engine errors."""

    pass


class NotFoundError(QuizTrackError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, identifier: object, detail: str | None = None):
        self.entity = entity
        self.identifier = identifier
        message = f"{entity} not found: {identifier}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvariantViolationError(QuizTrackError):
    """Raised when an attempt history breaks the 1..N round sequence."""

    pass


class InvalidContainerError(QuizTrackError):
    """Raised when a container reference is not exactly one of chapter/section."""

    pass
