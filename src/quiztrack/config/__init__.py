"""Configuration package for quiztrack."""

from quiztrack.config.app_config import (
    AppConfig,
    DatabaseConfig,
    StudyRecordsConfig,
    get_database_path,
    get_owner_id,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "StudyRecordsConfig",
    "get_database_path",
    "get_owner_id",
    "load_app_config",
]
