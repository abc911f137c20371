"""
Capture Pipeline Domain - Camera/File to Pest Report Workflow

Handles the complete scan workflow from a live camera or user-selected files
through object storage upload, remote pest detection and farm alerting.

Domain Responsibilities:
- Live camera session (acquire, still frame, clip recording, release)
- Artifact upload to the hosted storage bucket
- Remote detection requests and report ids
- Best-effort alert creation for HIGH/MEDIUM reports

Factory Usage:
```python
from pestscan.services.capture_pipeline import create_capture_pipeline
orchestrator = create_capture_pipeline()

# Live camera
await orchestrator.camera.acquire_camera()
report_id = await orchestrator.capture_still_frame()

# File batch
result = await orchestrator.submit_batch(artifacts, ScanType.QUICK_CHECK)
```
"""

from typing import Optional

from ...config import settings
from ...enums import LoggerName, LogSource
from ..logger import get_service_logger
from .alert_service import SupabaseAlertService
from .camera_service import CameraSession
from .capture_orchestrator import CaptureOrchestrator
from .detection_service import SupabaseDetectionService
from .interfaces import AlertRaiser, ArtifactStorage, ScanSubmitter
from .storage_service import SupabaseStorageService
from .supabase_client import HostedBackendClient

logger = get_service_logger(LoggerName.CAPTURE_PIPELINE, LogSource.PIPELINE)


def create_camera_session() -> CameraSession:
    """Camera session configured from settings."""
    return CameraSession(
        device_index=settings.camera_device_index,
        width=settings.camera_width,
        height=settings.camera_height,
        metadata_timeout_seconds=settings.camera_metadata_timeout_seconds,
        settle_seconds=settings.camera_settle_seconds,
        recording_fps=settings.recording_fps,
    )


def create_capture_pipeline(
    client: Optional[HostedBackendClient] = None,
    camera: Optional[CameraSession] = None,
) -> CaptureOrchestrator:
    """
    Factory function to create a complete capture pipeline.

    Args:
        client: Optional hosted backend client (defaults to config)
        camera: Optional camera session (defaults to config)

    Returns:
        CaptureOrchestrator with hosted-backend collaborators injected
    """
    logger.debug("Creating capture pipeline")

    client = client or HostedBackendClient()
    return CaptureOrchestrator(
        camera=camera or create_camera_session(),
        storage=SupabaseStorageService(client),
        detector=SupabaseDetectionService(client),
        alerter=SupabaseAlertService(client),
    )


__all__ = [
    "create_capture_pipeline",
    "create_camera_session",
    "CaptureOrchestrator",
    "CameraSession",
    "ArtifactStorage",
    "ScanSubmitter",
    "AlertRaiser",
    "HostedBackendClient",
    "SupabaseStorageService",
    "SupabaseDetectionService",
    "SupabaseAlertService",
]
