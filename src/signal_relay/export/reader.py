"""Reader for Signal chat-export archives."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..core import Attachment, Message
from ..core.exceptions import AttachmentUnavailable, ConfigurationError, ParseError
from .attachments import resolve_attachment_path

RECORDS_FILE = "main.jsonl"


class SignalExportReader:
    """
    Extract the "Note to Self" conversation from a Signal export.

    The export's record log is unordered, so the reader scans it twice:
    once to resolve which chat belongs to the self recipient, and once to
    pull that chat's messages out.
    """

    def __init__(self, export_path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.export_path = Path(export_path)
        self.logger = logger or logging.getLogger(__name__)

    @property
    def records_file(self) -> Path:
        return self.export_path / RECORDS_FILE

    def read_messages(self, after_ms: int = 0) -> Iterator[Message]:
        """
        Yield self-chat messages sent strictly after ``after_ms``.

        Messages come out in ascending ``sent_at_ms`` order; ties keep the
        order in which they appear in the export.

        Raises:
            ConfigurationError: If the records file or the self chat is missing
            ParseError: If a record is malformed
        """
        self_chat_id = self.find_self_chat_id()
        self.logger.debug(f"Self chat id resolved to {self_chat_id}")

        messages: List[Message] = []
        for line_num, record in self._records():
            message = self._parse_chat_item(record, line_num, self_chat_id, after_ms)
            if message is not None:
                messages.append(message)

        messages.sort(key=lambda m: m.sent_at_ms)
        self.logger.debug(f"Read {len(messages)} messages newer than {after_ms}")
        yield from messages

    def find_self_chat_id(self) -> str:
        """
        Resolve the chat id of the self conversation.

        The first recipient flagged as ``self`` wins, and the first chat
        pointing at that recipient wins. Records may come in any order.
        """
        self_recipient_id: Optional[str] = None
        chats_by_recipient: Dict[str, str] = {}

        for line_num, record in self._records():
            recipient = record.get("recipient")
            if isinstance(recipient, dict) and "self" in recipient and self_recipient_id is None:
                self_recipient_id = _as_id(_require(recipient, "id", self.records_file, line_num))

            chat = record.get("chat")
            if isinstance(chat, dict) and chat.get("recipientId") is not None:
                recipient_id = _as_id(chat["recipientId"])
                if recipient_id not in chats_by_recipient:
                    chats_by_recipient[recipient_id] = _as_id(
                        _require(chat, "id", self.records_file, line_num)
                    )

        if self_recipient_id is None or self_recipient_id not in chats_by_recipient:
            raise ConfigurationError("Could not find 'Note to Self' chat in export.")

        return chats_by_recipient[self_recipient_id]

    def _records(self) -> Iterator[Tuple[int, Dict[str, Any]]]:
        """Yield (line number, record) for every non-blank line."""
        try:
            f = open(self.records_file, "r", encoding="utf-8")
        except FileNotFoundError:
            raise ConfigurationError(f"Export records file not found: {self.records_file}")

        with f:
            try:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        record = json.loads(line)
                    except json.JSONDecodeError as e:
                        raise ParseError(str(self.records_file), line_num, f"invalid JSON: {e}")
                    if not isinstance(record, dict):
                        raise ParseError(str(self.records_file), line_num, "record is not an object")
                    yield line_num, record
            except UnicodeDecodeError as e:
                # Decoding happens in chunks, so no reliable line number
                raise ParseError(str(self.records_file), reason=f"invalid UTF-8: {e}")

    def _parse_chat_item(
        self,
        record: Dict[str, Any],
        line_num: int,
        self_chat_id: str,
        after_ms: int
    ) -> Optional[Message]:
        """Turn a chatItem record into a Message, or None when it does not qualify."""
        chat_item = record.get("chatItem")
        if not isinstance(chat_item, dict):
            return None
        if chat_item.get("chatId") is None or _as_id(chat_item["chatId"]) != self_chat_id:
            return None
        standard_message = chat_item.get("standardMessage")
        if not isinstance(standard_message, dict):
            # Reactions, calls, updates and other non-content items
            return None

        sent_at_ms = self._parse_timestamp(chat_item.get("dateSent"), line_num)
        if sent_at_ms <= after_ms:
            return None

        body = None
        text = standard_message.get("text")
        if isinstance(text, dict) and isinstance(text.get("body"), str):
            body = text["body"] or None

        attachments = []
        for attachment_data in standard_message.get("attachments") or []:
            attachment = self._resolve_attachment(attachment_data, line_num)
            if attachment is not None:
                attachments.append(attachment)

        if body is None and not attachments:
            self.logger.debug(f"Nothing left to send for message at {sent_at_ms}, skipping")
            return None

        return Message(sent_at_ms=sent_at_ms, body=body, attachments=tuple(attachments))

    def _parse_timestamp(self, raw: Any, line_num: int) -> int:
        """Parse dateSent, which the export encodes as a numeric string."""
        if isinstance(raw, bool) or raw is None:
            raise ParseError(str(self.records_file), line_num, f"invalid dateSent {raw!r}")
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ParseError(str(self.records_file), line_num, f"invalid dateSent {raw!r}")

    def _resolve_attachment(self, data: Any, line_num: int) -> Optional[Attachment]:
        """Resolve one attachment record, dropping it with a warning when unavailable."""
        if not isinstance(data, dict):
            raise ParseError(str(self.records_file), line_num, "attachment is not an object")

        pointer = data.get("pointer") if isinstance(data.get("pointer"), dict) else {}
        content_type = pointer.get("contentType")
        if not isinstance(content_type, str) or not content_type:
            content_type = "application/octet-stream"

        try:
            if not data.get("wasDownloaded"):
                raise AttachmentUnavailable(content_type, "not downloaded")

            content_type = _require_str(pointer, "contentType", self.records_file, line_num)
            locator = _require(pointer, "locatorInfo", self.records_file, line_num)
            plaintext_hash = _require_str(locator, "plaintextHash", self.records_file, line_num)
            try:
                path = resolve_attachment_path(self.export_path, content_type, plaintext_hash)
            except ValueError as e:
                raise ParseError(str(self.records_file), line_num, str(e))

            return Attachment(content_type=content_type, resolved_path=path)

        except AttachmentUnavailable as e:
            self.logger.warning(f"{e}, skipping (line {line_num})")
            return None


def _require(mapping: Any, key: str, file_path: Path, line_num: int) -> Any:
    if not isinstance(mapping, dict) or mapping.get(key) in (None, ""):
        raise ParseError(str(file_path), line_num, f"missing required field '{key}'")
    return mapping[key]


def _require_str(mapping: Any, key: str, file_path: Path, line_num: int) -> str:
    value = _require(mapping, key, file_path, line_num)
    if not isinstance(value, str):
        raise ParseError(str(file_path), line_num, f"field '{key}' must be a string, got {value!r}")
    return value


def _as_id(value: Any) -> str:
    # Ids are numeric strings in the export, but tolerate bare numbers
    return str(value)
