"""Core domain models and configuration."""

from .config import RelayConfig
from .models import Attachment, Message, RelayResult, MigrationStats
from .exceptions import (
    MigrationError,
    ConfigurationError,
    ParseError,
    AttachmentUnavailable,
    RelayError
)

__all__ = [
    "RelayConfig",
    "Attachment",
    "Message",
    "RelayResult",
    "MigrationStats",
    "MigrationError",
    "ConfigurationError",
    "ParseError",
    "AttachmentUnavailable",
    "RelayError"
]
