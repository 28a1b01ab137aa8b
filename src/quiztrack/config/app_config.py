"""Application configuration loader.

Loads centralized configuration from data/config/quiztrack_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from quiztrack.config.app_config import load_app_config, get_database_path

    config = load_app_config()
    db_path = get_database_path()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/quiztrack_v1.yaml")

# Environment overrides
DB_PATH_ENV = "QUIZTRACK_DB_PATH"
OWNER_ENV = "QUIZTRACK_OWNER"


@dataclass
class DatabaseConfig:
    """SQLite persistence settings."""

    path: str = "db/quiztrack.db"


@dataclass
class StudyRecordsConfig:
    """Study-history log settings."""

    retention_per_book: int = 10
    recent_items_limit: int = 3


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    study_records: StudyRecordsConfig = field(default_factory=StudyRecordsConfig)
    default_owner_id: str = "local"


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/quiztrack.db"},
        "study_records": {
            "retention_per_book": 10,
            "recent_items_limit": 3,
        },
        "owner": {"default_owner_id": "local"},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    database = DatabaseConfig(path=db_data.get("path", "db/quiztrack.db"))

    records_data = data.get("study_records") or {}
    study_records = StudyRecordsConfig(
        retention_per_book=int(records_data.get("retention_per_book", 10)),
        recent_items_limit=int(records_data.get("recent_items_limit", 3)),
    )
    if study_records.retention_per_book < 1:
        raise ValueError("study_records.retention_per_book must be at least 1")

    owner_data = data.get("owner") or {}

    return AppConfig(
        database=database,
        study_records=study_records,
        default_owner_id=owner_data.get("default_owner_id", "local"),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_database_path() -> Path:
    """Database file path; QUIZTRACK_DB_PATH wins over the config file."""
    override = os.environ.get(DB_PATH_ENV)
    if override:
        return Path(override)
    return Path(load_app_config().database.path)


def get_owner_id() -> str:
    """Owner id for local use; QUIZTRACK_OWNER wins over the config file."""
    return os.environ.get(OWNER_ENV) or load_app_config().default_owner_id


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
