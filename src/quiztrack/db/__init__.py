"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Quiz book tree store (tree loads, question transactions)
- Study record log with per-book retention
"""

from quiztrack.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
