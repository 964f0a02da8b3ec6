"""Centralized logging configuration."""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        format_string: Optional custom format string

    Returns:
        Configured root logger
    """
    if not format_string:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper()))

    # Replace handlers from any earlier call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(file_handler)

    # urllib3 logs every request URL, and the bot token is part of it
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger


class ProgressReporter:
    """Per-message progress lines for a migration run."""

    def __init__(self, total: int, logger: Optional[logging.Logger] = None):
        self.total = total
        self.current = 0
        self.logger = logger or logging.getLogger(__name__)
        self.start_time = datetime.now()

    def sending(self, preview: str) -> None:
        """Announce the next message."""
        self.current += 1
        self.logger.info(f"[{self.current}/{self.total}] Sending: {preview} ...")

    def sent(self, api_calls: int) -> None:
        self.logger.info(f"[{self.current}/{self.total}] OK ({api_calls} call(s))")

    def failed(self, error: Exception) -> None:
        self.logger.error(f"[{self.current}/{self.total}] FAILED: {error}")

    def complete(self, sent: int) -> None:
        """Log the end-of-run line."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self.logger.info(f"Done. Sent {sent} messages in {elapsed:.1f}s.")
