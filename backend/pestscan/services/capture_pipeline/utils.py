# backend/pestscan/services/capture_pipeline/utils.py
"""
Capture Pipeline Utilities

Filename and storage-key helpers plus artifact construction for user
selected files.
"""

import mimetypes
import time
import uuid
from pathlib import Path
from typing import Optional, Union

from ...constants import LIVE_SCAN_FILENAME_PREFIX
from ...enums import ArtifactOrigin
from ...exceptions import ValidationError
from ...models.capture_pipeline_models import CapturedArtifact

SUPPORTED_MEDIA_PREFIXES = ("image/", "video/")


def generate_capture_filename(extension: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Synthetic filename for camera artifacts.

    Format: live-scan-{epoch_ms}.{extension}
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{LIVE_SCAN_FILENAME_PREFIX}-{timestamp_ms}.{extension}"


def generate_storage_key(extension: str) -> str:
    """Randomized object key; the original filename is never used."""
    return f"{uuid.uuid4().hex}.{extension}"


def guess_mime_type(filename: str, fallback: str = "application/octet-stream") -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or fallback


def artifact_from_upload(
    filename: str, content: bytes, mime_type: Optional[str] = None
) -> CapturedArtifact:
    """
    Wrap a user-selected file as an artifact.

    Raises:
        ValidationError: If the file is empty or not an image/video
    """
    mime_type = mime_type or guess_mime_type(filename)

    if not mime_type.startswith(SUPPORTED_MEDIA_PREFIXES):
        raise ValidationError(f"{filename} is not an image or video file")
    if not content:
        raise ValidationError(f"{filename} is empty")

    return CapturedArtifact(
        content=content,
        mime_type=mime_type,
        origin=ArtifactOrigin.FILE_UPLOAD,
        filename=filename,
    )


def artifact_from_path(path: Union[str, Path]) -> CapturedArtifact:
    """Read a file from disk into an upload artifact."""
    path = Path(path)
    return artifact_from_upload(path.name, path.read_bytes())
