"""Custom exception hierarchy for the migration system."""

from typing import Optional


class MigrationError(Exception):
    """Base exception for all migration-related errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(MigrationError):
    """Raised when a required setting is missing or the export cannot be used."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting


class ParseError(MigrationError):
    """Raised when a record or checkpoint file is malformed."""

    def __init__(self, file_path: str, line_number: Optional[int] = None, reason: str = ""):
        message = f"Failed to parse {file_path}"
        if line_number:
            message += f" at line {line_number}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.line_number = line_number
        self.reason = reason


class AttachmentUnavailable(MigrationError):
    """Raised when an attachment blob was never downloaded or cannot be found."""

    def __init__(self, content_type: str, reason: str, path: Optional[str] = None):
        message = f"Attachment ({content_type}) unavailable: {reason}"
        if path:
            message += f" [{path}]"
        super().__init__(message)
        self.content_type = content_type
        self.reason = reason
        self.path = path


class RelayError(MigrationError):
    """Raised when an outbound bot API call fails."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Relay {operation} failed: {reason}")
        self.operation = operation
        self.reason = reason
