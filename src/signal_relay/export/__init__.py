"""Signal export parsing and attachment resolution."""

from .attachments import (
    CONTENT_TYPE_EXTENSIONS,
    extension_for,
    resolve_attachment_path
)
from .reader import SignalExportReader

__all__ = [
    "CONTENT_TYPE_EXTENSIONS",
    "extension_for",
    "resolve_attachment_path",
    "SignalExportReader"
]
