"""
Signal to Telegram Relay
========================

Moves the "Note to Self" history out of a Signal export and into a
Telegram chat through a bot, one message at a time, resuming from a
checkpoint after interruptions.

License: MIT
"""

from .core.config import RelayConfig
from .core.models import Attachment, Message
from .main import MigrationDriver, RelayContainer, create_driver

__version__ = "1.0.0"
__all__ = [
    "RelayConfig",
    "Attachment",
    "Message",
    "MigrationDriver",
    "RelayContainer",
    "create_driver"
]
