"""Resumable progress tracking."""

from .checkpoint_store import CheckpointStore

__all__ = ["CheckpointStore"]
