"""Telegram Bot API client over HTTP."""

import logging
from typing import Any, BinaryIO, Dict, Optional

import requests

from ..core.exceptions import RelayError
from .base import BotClient

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.telegram.org"


class TelegramBotApi(BotClient):
    """
    Minimal Telegram Bot API client.

    Only the four send methods the relay needs are implemented. Every
    failure, whether transport or API-level, surfaces as RelayError.
    """

    def __init__(
        self,
        token: str,
        chat_id: str,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            token: Bot token issued by BotFather
            chat_id: Target chat id or @channel username
            api_base: API root, overridable for local Bot API servers
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session

        Raises:
            ValueError: If token or chat id is empty
        """
        if not token:
            raise ValueError("Telegram bot token is required")
        if not chat_id:
            raise ValueError("Telegram chat id is required")

        self.chat_id = str(chat_id)
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = token
        # Note: Never log the token, it is part of every URL
        logger.debug(f"Initialized Telegram client for chat {self.chat_id}")

    def send_text(self, text: str) -> None:
        self._call("sendMessage", {"text": text})

    def send_photo(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._upload("sendPhoto", "photo", stream, filename, caption)

    def send_video(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._upload("sendVideo", "video", stream, filename, caption)

    def send_document(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        self._upload("sendDocument", "document", stream, filename, caption)

    def _upload(
        self,
        method: str,
        field_name: str,
        stream: BinaryIO,
        filename: str,
        caption: Optional[str]
    ) -> None:
        fields: Dict[str, Any] = {}
        if caption:
            fields["caption"] = caption
        self._call(method, fields, files={field_name: (filename, stream)})

    def _call(
        self,
        method: str,
        fields: Dict[str, Any],
        files: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """POST one API method and return the decoded response body."""
        url = f"{self.api_base}/bot{self._token}/{method}"
        data = {"chat_id": self.chat_id, **fields}

        try:
            response = self.session.post(url, data=data, files=files, timeout=self.timeout)
        except requests.RequestException as e:
            # The exception text may contain the URL, so only report its type
            raise RelayError(method, f"{type(e).__name__} while contacting Telegram")

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code != 200 or not payload.get("ok"):
            description = payload.get("description") or response.text[:200] or "unknown Telegram error"
            logger.error(f"Telegram {method} rejected ({response.status_code}): {description}")
            raise RelayError(method, f"HTTP {response.status_code}: {description}")

        logger.debug(f"Telegram {method} succeeded")
        return payload

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
