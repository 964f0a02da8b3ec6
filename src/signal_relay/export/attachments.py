"""Content-addressed attachment blob resolution."""

import base64
import binascii
from pathlib import Path
from typing import Dict, Union

from ..core.exceptions import AttachmentUnavailable

# Extension the export uses for each content type's blob file
CONTENT_TYPE_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "application/pdf": ".pdf",
}

DEFAULT_EXTENSION = ".bin"

FILES_DIR = "files"


def extension_for(content_type: str) -> str:
    """Map a content type to the blob file extension, '.bin' when unknown."""
    return CONTENT_TYPE_EXTENSIONS.get(content_type.strip().lower(), DEFAULT_EXTENSION)


def hash_to_hex(plaintext_hash_b64: str) -> str:
    """
    Decode a base64 plaintext hash into its lowercase hex form.

    Raises:
        ValueError: If the hash is not valid base64
    """
    try:
        raw = base64.b64decode(plaintext_hash_b64, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ValueError(f"invalid base64 plaintext hash {plaintext_hash_b64!r}: {e}")
    if not raw:
        raise ValueError("empty plaintext hash")
    return raw.hex()


def blob_path(export_dir: Union[str, Path], content_type: str, plaintext_hash_b64: str) -> Path:
    """
    Compute where the export stores a blob.

    Layout is ``files/<first two hex chars>/<full hex><extension>``.
    """
    hex_digest = hash_to_hex(plaintext_hash_b64)
    filename = hex_digest + extension_for(content_type)
    return Path(export_dir) / FILES_DIR / hex_digest[:2] / filename


def resolve_attachment_path(
    export_dir: Union[str, Path],
    content_type: str,
    plaintext_hash_b64: str
) -> Path:
    """
    Locate an attachment blob on disk.

    Returns:
        Absolute path to the existing blob file

    Raises:
        ValueError: If the hash cannot be decoded
        AttachmentUnavailable: If no file exists at the computed path
    """
    path = blob_path(export_dir, content_type, plaintext_hash_b64)
    if not path.is_file():
        raise AttachmentUnavailable(content_type, "file not found", path=str(path))
    return path.resolve()
