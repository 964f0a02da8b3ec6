"""Core domain models for the migration system."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Attachment:
    """A resolved attachment blob on disk."""

    content_type: str
    resolved_path: Path

    def __post_init__(self):
        """Validate attachment on creation."""
        if not self.content_type:
            raise ValueError("Attachment content type cannot be empty")
        path = Path(self.resolved_path)
        if not path.is_file():
            raise ValueError(f"Attachment file does not exist: {path}")
        object.__setattr__(self, "resolved_path", path)

    @property
    def filename(self) -> str:
        """Display filename sent along with the upload."""
        return self.resolved_path.name


@dataclass(frozen=True)
class Message:
    """A single message from the self conversation."""

    sent_at_ms: int
    body: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()

    def __post_init__(self):
        """Validate message on creation."""
        object.__setattr__(self, "attachments", tuple(self.attachments))
        if not self.body and not self.attachments:
            raise ValueError(
                f"Message at {self.sent_at_ms} has neither body nor attachments"
            )

    def preview(self, limit: int = 60) -> str:
        """Short one-line description for progress output."""
        if self.body:
            if len(self.body) > limit:
                return self.body[:limit] + "..."
            return self.body
        return f"[{len(self.attachments)} attachment(s)]"


@dataclass
class RelayResult:
    """Result of relaying one message."""

    sent_at_ms: int
    success: bool
    api_calls: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0


@dataclass
class MigrationStats:
    """Aggregate statistics for a migration run."""

    total_messages: int = 0
    sent_messages: int = 0
    failed_messages: int = 0
    api_calls: int = 0
    total_duration_seconds: float = 0.0
    last_sent_at_ms: int = 0
    errors: List[str] = field(default_factory=list)

    def add_result(self, result: RelayResult) -> None:
        """Add a result to the statistics."""
        if result.success:
            self.sent_messages += 1
            self.api_calls += result.api_calls
        else:
            self.failed_messages += 1
            if result.error:
                self.errors.append(f"{result.sent_at_ms}: {result.error}")
        self.total_duration_seconds += result.duration_seconds

    @property
    def pending_messages(self) -> int:
        """Messages found but neither sent nor failed."""
        return self.total_messages - self.sent_messages - self.failed_messages

    def summary(self) -> str:
        """Generate summary string."""
        return (
            f"Migration Statistics:\n"
            f"  Messages Found: {self.total_messages}\n"
            f"  Sent: {self.sent_messages}\n"
            f"  Failed: {self.failed_messages}\n"
            f"  API Calls: {self.api_calls}\n"
            f"  Checkpoint: {self.last_sent_at_ms}\n"
            f"  Total Duration: {self.total_duration_seconds:.2f}s"
        )
