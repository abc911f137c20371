# backend/pestscan/services/capture_pipeline/interfaces.py
"""
Remote collaborator interfaces for the capture pipeline.

The orchestrator only talks to these; the hosted-backend implementations
live in storage_service, detection_service and alert_service, and tests
substitute in-memory fakes.
"""

from abc import ABC, abstractmethod

from ...enums import ScanType
from ...models.alert_model import AlertOutcome
from ...models.capture_pipeline_models import CapturedArtifact, DetectionResult


class ArtifactStorage(ABC):
    """Object storage that publishes artifacts at a public URL."""

    @abstractmethod
    async def upload(self, artifact: CapturedArtifact) -> str:
        """
        Store an artifact under a randomized key.

        Returns:
            Public URL of the stored object

        Raises:
            UploadError: If the storage layer rejects the upload
        """


class ScanSubmitter(ABC):
    """Remote detection function that turns an uploaded artifact into a report."""

    @abstractmethod
    async def submit_scan(self, image_url: str, scan_type: ScanType) -> DetectionResult:
        """
        Request detection for a public artifact URL.

        Raises:
            DetectionError: If the function fails or returns no report id
        """


class AlertRaiser(ABC):
    """Creates farm alerts for high-severity reports."""

    @abstractmethod
    async def maybe_raise_alert(self, report_id: str, scan_type: ScanType) -> AlertOutcome:
        """Raise an alert if the report warrants one. Never raises."""
