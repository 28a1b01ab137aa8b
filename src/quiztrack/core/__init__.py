"""Core business logic module.

Modules:
- models: quiz book tree (QuizBook, Chapter, Section, QuestionRecord, Attempt)
- rounds: per-question round resolution and sequence checks
- attempt_recorder: record, retract, delete, confirm
- progress: chapter rates and round/chapter/section analytics
- mastery: streak colours and recent study items
- engine: QuizTrackEngine, the surface used by the CLI and web API
"""

__all__ = [
    "models",
    "errors",
    "rounds",
    "attempt_recorder",
    "progress",
    "mastery",
    "engine",
]
