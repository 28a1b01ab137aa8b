"""Attempt tracking and progress analytics for quiz books."""

__version__ = "0.1.0"
