# backend/pestscan/models/capture_pipeline_models.py
"""
Capture Pipeline Domain Models

Pydantic models for captured artifacts, scan requests sent to the remote
detection function, and the results that flow back.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import MIME_EXTENSIONS
from ..enums import ArtifactOrigin, ScanType


class CapturedArtifact(BaseModel):
    """A still image or video clip held in memory until it is uploaded."""

    content: bytes = Field(..., repr=False, description="Raw artifact bytes")
    mime_type: str = Field(..., description="MIME type of the artifact")
    origin: ArtifactOrigin = Field(..., description="How the artifact was produced")
    filename: str = Field(..., description="Synthetic or user-supplied filename")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Capture/selection timestamp",
    )

    @property
    def extension(self) -> str:
        """File extension used when building the storage key."""
        if "." in self.filename:
            return self.filename.rsplit(".", 1)[-1].lower()
        return MIME_EXTENSIONS.get(self.mime_type, "bin")

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ScanRequest(BaseModel):
    """Body sent to the remote detection function."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    image_url: str = Field(..., alias="imageUrl")
    scan_type: ScanType = Field(..., alias="scanType")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class DetectionResult(BaseModel):
    """Response returned by the remote detection function."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    report_id: str = Field(..., alias="reportId")
    detections_count: Optional[int] = Field(None, alias="detectionsCount")
    detections: Optional[List[Any]] = None

    @property
    def pest_count(self) -> int:
        """Number of pests found, from whichever field the backend filled in."""
        return self.detections_count or len(self.detections or []) or 0


class BatchScanResult(BaseModel):
    """Outcome of a fully processed batch submission."""

    scan_type: ScanType
    report_ids: List[str] = Field(
        default_factory=list, description="Report ids in submission order"
    )

    @property
    def first_report_id(self) -> Optional[str]:
        return self.report_ids[0] if self.report_ids else None

    @property
    def processed_count(self) -> int:
        return len(self.report_ids)


class CameraStatus(BaseModel):
    """Snapshot of the live camera session."""

    active: bool
    recording: bool
    recording_duration_seconds: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
