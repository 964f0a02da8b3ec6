"""Telegram bot client and message relay."""

from .base import BotClient
from .bot_api import TelegramBotApi
from .dry_run import DryRunBotClient
from .relay import CAPTION_LIMIT, MessageRelay

__all__ = [
    "BotClient",
    "TelegramBotApi",
    "DryRunBotClient",
    "CAPTION_LIMIT",
    "MessageRelay"
]
