"""Utility functions for the migration."""

from .logger import setup_logging, ProgressReporter

__all__ = [
    "setup_logging",
    "ProgressReporter"
]
