"""Checkpoint persistence with atomic writes."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union
import fcntl
import tempfile

from ..core.exceptions import ParseError

logger = logging.getLogger(__name__)

CHECKPOINT_KEY = "lastSentAtMs"
# Key written by the original tool's progress.json
LEGACY_CHECKPOINT_KEY = "lastSentDateMs"


class CheckpointStore:
    """
    Persist the timestamp of the last successfully relayed message.

    The file holds a single JSON object ``{"lastSentAtMs": <int>}`` and is
    rewritten through a temp file and an atomic rename, so an interrupted
    write leaves the previous value in place.
    """

    def __init__(self, checkpoint_file: Union[str, Path]):
        self.checkpoint_file = Path(checkpoint_file)
        self._last_sent_at_ms: Optional[int] = None
        self._lock_file = None

    @property
    def last_sent_at_ms(self) -> int:
        """Latest known checkpoint, loading it on first access."""
        if self._last_sent_at_ms is None:
            return self.load()
        return self._last_sent_at_ms

    def load(self) -> int:
        """
        Read the checkpoint from disk.

        Returns:
            The stored timestamp, or 0 when no checkpoint exists yet

        Raises:
            ParseError: If the file exists but does not hold a valid checkpoint
        """
        if not self.checkpoint_file.exists():
            logger.info("No progress file found, starting from the beginning.")
            self._last_sent_at_ms = 0
            return 0

        try:
            with open(self.checkpoint_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(str(self.checkpoint_file), reason=f"invalid JSON: {e}")
        except UnicodeDecodeError as e:
            raise ParseError(str(self.checkpoint_file), reason=f"invalid UTF-8: {e}")

        value = None
        if isinstance(data, dict):
            value = data.get(CHECKPOINT_KEY, data.get(LEGACY_CHECKPOINT_KEY))
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ParseError(
                str(self.checkpoint_file),
                reason=f"expected a non-negative integer '{CHECKPOINT_KEY}', got {value!r}"
            )

        logger.info(f"Resuming from dateSent > {value}")
        self._last_sent_at_ms = value
        return value

    def advance(self, sent_at_ms: int) -> None:
        """
        Persist a new checkpoint, replacing the previous one.

        Only call this after the message at ``sent_at_ms`` was fully relayed.
        """
        checkpoint_dir = self.checkpoint_file.parent
        checkpoint_dir.mkdir(parents=True, exist_ok=True)

        # Temp file in the same directory so the rename stays on one filesystem
        temp_fd, temp_path = tempfile.mkstemp(
            dir=str(checkpoint_dir),
            prefix=".tmp_checkpoint_",
            suffix=".json"
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump({CHECKPOINT_KEY: sent_at_ms}, f)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, self.checkpoint_file)

        except Exception as e:
            logger.error(f"Failed to save checkpoint: {e}")
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise

        self._last_sent_at_ms = sent_at_ms
        logger.debug(f"Checkpoint advanced to {sent_at_ms}")

    def reset(self) -> None:
        """Forget all progress so the next run starts from the beginning."""
        try:
            self.checkpoint_file.unlink()
            logger.info(f"Removed checkpoint {self.checkpoint_file}")
        except FileNotFoundError:
            pass
        self._last_sent_at_ms = 0

    def acquire_lock(self) -> bool:
        """Acquire an exclusive lock so two runs cannot relay concurrently."""
        lock_path = self.checkpoint_file.with_name(self.checkpoint_file.name + ".lock")
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_file = open(lock_path, "w")
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            lock_file.close()
            return False
        self._lock_file = lock_file
        return True

    def release_lock(self) -> None:
        """Release the checkpoint lock."""
        if self._lock_file:
            try:
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            finally:
                self._lock_file.close()
                self._lock_file = None
