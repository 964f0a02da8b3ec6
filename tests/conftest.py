"""
Pytest configuration and shared fixtures.

The ``export_builder`` fixture writes a synthetic Signal export
(``main.jsonl`` plus the sharded ``files/`` blob tree) into a temporary
directory.
"""

import base64
import hashlib
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add src directory to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from signal_relay.export.attachments import extension_for

SELF_RECIPIENT_ID = "1"
OTHER_RECIPIENT_ID = "2"
SELF_CHAT_ID = "10"
OTHER_CHAT_ID = "20"


class ExportBuilder:
    """Accumulate records and blobs, then write them as an export."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.records: List[Dict[str, Any]] = [
            {"backupInfo": {"version": "1", "backupTimeMs": "1700000000000"}}
        ]
        self._blob_counter = 0

    def recipient(self, recipient_id: str, is_self: bool = False) -> "ExportBuilder":
        record: Dict[str, Any] = {"id": recipient_id}
        if is_self:
            record["self"] = {}
        else:
            record["contact"] = {"profileGivenName": "Someone"}
        self.records.append({"recipient": record})
        return self

    def chat(self, chat_id: str, recipient_id: str) -> "ExportBuilder":
        self.records.append({"chat": {"id": chat_id, "recipientId": recipient_id}})
        return self

    def self_chat(self) -> "ExportBuilder":
        """Standard identity records: self + one contact, each with a chat."""
        return (
            self.recipient(SELF_RECIPIENT_ID, is_self=True)
            .recipient(OTHER_RECIPIENT_ID)
            .chat(SELF_CHAT_ID, SELF_RECIPIENT_ID)
            .chat(OTHER_CHAT_ID, OTHER_RECIPIENT_ID)
        )

    def blob(self, content_type: str = "image/jpeg", content: Optional[bytes] = None,
             write: bool = True) -> str:
        """Create a blob file and return its base64 plaintext hash."""
        if content is None:
            self._blob_counter += 1
            content = f"blob-{self._blob_counter}".encode()
        digest = hashlib.sha256(content).digest()
        hex_digest = digest.hex()
        if write:
            path = self.root / "files" / hex_digest[:2] / (hex_digest + extension_for(content_type))
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return base64.b64encode(digest).decode()

    def attachment(self, content_type: str = "image/jpeg", downloaded: bool = True,
                   write_blob: bool = True, content: Optional[bytes] = None) -> Dict[str, Any]:
        plaintext_hash = self.blob(content_type, content=content, write=write_blob)
        data: Dict[str, Any] = {
            "pointer": {
                "contentType": content_type,
                "locatorInfo": {"plaintextHash": plaintext_hash, "size": 16},
            }
        }
        if downloaded:
            data["wasDownloaded"] = True
        return data

    def message(self, date_sent: Any, body: Optional[str] = None,
                attachments: Optional[List[Dict[str, Any]]] = None,
                chat_id: str = SELF_CHAT_ID) -> "ExportBuilder":
        standard_message: Dict[str, Any] = {}
        if body is not None:
            standard_message["text"] = {"body": body}
        if attachments:
            standard_message["attachments"] = attachments
        self.records.append({
            "chatItem": {
                "chatId": chat_id,
                "authorId": SELF_RECIPIENT_ID,
                "dateSent": str(date_sent),
                "outgoing": {},
                "standardMessage": standard_message,
            }
        })
        return self

    def raw(self, record: Dict[str, Any]) -> "ExportBuilder":
        self.records.append(record)
        return self

    def write(self, extra_lines: Optional[List[str]] = None) -> Path:
        lines = [json.dumps(record) for record in self.records]
        if extra_lines:
            lines.extend(extra_lines)
        (self.root / "main.jsonl").write_text("\n".join(lines) + "\n", encoding="utf-8")
        return self.root


@pytest.fixture
def export_builder(tmp_path):
    """Builder rooted at a fresh export directory."""
    return ExportBuilder(tmp_path / "export")


@pytest.fixture
def scenario_export(export_builder):
    """
    Self chat with three messages: 100 "hello", 200 one image with no body,
    300 "world" with one image.
    """
    builder = export_builder.self_chat()
    builder.message(100, body="hello")
    builder.message(200, attachments=[builder.attachment("image/jpeg")])
    builder.message(300, body="world", attachments=[builder.attachment("image/jpeg")])
    return builder.write()
