"""Bot client that only logs what it would send."""

import logging
from typing import BinaryIO, List, Optional, Tuple

from .base import BotClient

logger = logging.getLogger(__name__)


class DryRunBotClient(BotClient):
    """Record and log calls instead of contacting Telegram."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    def send_text(self, text: str) -> None:
        self._record("send_text", f"{len(text)} chars", None)

    def send_photo(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._record("send_photo", filename, caption)

    def send_video(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._record("send_video", filename, caption)

    def send_document(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._record("send_document", filename, caption)

    def _record(self, method: str, target: str, caption: Optional[str]) -> None:
        self.calls.append((method, target, caption))
        suffix = " with caption" if caption else ""
        logger.info(f"  [dry-run] {method} {target}{suffix}")
