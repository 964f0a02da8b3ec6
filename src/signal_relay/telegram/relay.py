"""Map exported messages onto bot API calls."""

import logging
from typing import Optional

from ..core import Attachment, Message
from ..core.exceptions import RelayError
from .base import BotClient

logger = logging.getLogger(__name__)

# Telegram rejects media captions longer than this (UTF-16 code units)
CAPTION_LIMIT = 1024


def caption_length(text: str) -> int:
    """Length of text as the Bot API counts it."""
    return len(text.encode("utf-16-le")) // 2


class MessageRelay:
    """
    Send one exported message through a bot client.

    Text-only messages become one text call. With attachments, the body
    rides along as the caption of the first attachment, unless it is too
    long for a caption, in which case it goes out as a text call first and
    no attachment is captioned.
    """

    def __init__(self, client: BotClient, caption_limit: int = CAPTION_LIMIT):
        self.client = client
        self.caption_limit = caption_limit

    def send(self, message: Message) -> int:
        """
        Relay a message.

        Returns:
            Number of API calls made

        Raises:
            RelayError: If any call fails; remaining attachments are not sent
        """
        body = message.body or None

        if not message.attachments:
            if body is None:
                logger.debug(f"Message at {message.sent_at_ms} is empty, nothing to send")
                return 0
            self.client.send_text(body)
            return 1

        calls = 0
        caption: Optional[str] = None
        if body is not None:
            if caption_length(body) > self.caption_limit:
                logger.debug(
                    f"Body of message at {message.sent_at_ms} exceeds caption limit, "
                    f"sending as text"
                )
                self.client.send_text(body)
                calls += 1
            else:
                caption = body

        for attachment in message.attachments:
            self.send_attachment(attachment, caption)
            calls += 1
            caption = None

        return calls

    def send_attachment(self, attachment: Attachment, caption: Optional[str] = None) -> None:
        """Upload one attachment with the method matching its content type."""
        operation = dispatch_method(attachment.content_type)
        send = getattr(self.client, operation)

        try:
            with open(attachment.resolved_path, "rb") as stream:
                send(stream, attachment.filename, caption=caption)
        except OSError as e:
            raise RelayError(operation, f"cannot read {attachment.resolved_path}: {e}")


def dispatch_method(content_type: str) -> str:
    """Name of the BotClient method that uploads this content type."""
    content_type = content_type.lower()
    if content_type.startswith("image/"):
        return "send_photo"
    if content_type.startswith("video/"):
        return "send_video"
    return "send_document"
