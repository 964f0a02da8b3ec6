"""Abstract base class for bot API clients."""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class BotClient(ABC):
    """
    Abstract interface for the bot API the relay talks to.

    The target chat is bound when the client is constructed, so every
    method only carries the payload.
    """

    @abstractmethod
    def send_text(self, text: str) -> None:
        """
        Send a plain text message.

        Raises:
            RelayError: If the call fails
        """

    @abstractmethod
    def send_photo(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        """
        Upload an image.

        Args:
            stream: Open binary file to upload
            filename: Display filename
            caption: Optional text shown with the media

        Raises:
            RelayError: If the call fails
        """

    @abstractmethod
    def send_video(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        """Upload a video. Same contract as send_photo."""

    @abstractmethod
    def send_document(self, stream: BinaryIO, filename: str, caption: Optional[str] = None) -> None:
        """Upload any other file as a document. Same contract as send_photo."""

    def close(self) -> None:
        """Release any resources held by the client."""
