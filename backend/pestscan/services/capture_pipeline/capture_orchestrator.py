# backend/pestscan/services/capture_pipeline/capture_orchestrator.py
"""
Capture Pipeline Orchestrator

Coordinates the complete scan workflow for camera and file artifacts:

1. Produce artifact (still frame, recorded clip, or selected file)
2. Upload to object storage
3. Submit the public URL to the remote detection function
4. Raise an alert for HIGH/MEDIUM reports (best effort)
5. Return the report id

📝 KEY ARCHITECTURAL BOUNDARIES:
- NO HTTP details (delegates to the storage/detection/alert interfaces)
- NO device handling beyond lifecycle calls (delegates to CameraSession)
"""

from typing import Iterable, List, Optional

from ...enums import LogEmoji, LoggerName, LogSource, ScanType
from ...exceptions import (
    BatchAbortedError,
    DetectionError,
    EmptySelectionError,
    UploadError,
)
from ...models.capture_pipeline_models import BatchScanResult, CapturedArtifact
from ..logger import get_service_logger
from .camera_service import CameraSession
from .interfaces import AlertRaiser, ArtifactStorage, ScanSubmitter

logger = get_service_logger(LoggerName.CAPTURE_PIPELINE, LogSource.PIPELINE)


class CaptureOrchestrator:
    """
    Capture-to-report workflow over injected collaborators.

    Every artifact goes through the same upload → detect → alert sequence.
    Files in a batch are processed strictly one after another.
    """

    def __init__(
        self,
        camera: CameraSession,
        storage: ArtifactStorage,
        detector: ScanSubmitter,
        alerter: AlertRaiser,
    ):
        """
        Initialize the orchestrator.

        Args:
            camera: Live camera session used by the camera flows
            storage: Object storage for artifacts
            detector: Remote detection function
            alerter: Alert creation for severe reports
        """
        self.camera = camera
        self.storage = storage
        self.detector = detector
        self.alerter = alerter

    async def process_artifact(
        self, artifact: CapturedArtifact, scan_type: ScanType
    ) -> str:
        """
        Upload one artifact, request detection and raise an alert if needed.

        Args:
            artifact: Artifact to scan
            scan_type: Scan type recorded on the report

        Returns:
            Report id created by the detection function

        Raises:
            UploadError: "Upload failed for <name>: <message>"
            DetectionError: "Detection failed for <name>: <message>"
        """
        scan_type = ScanType(scan_type)

        try:
            image_url = await self.storage.upload(artifact)
        except UploadError as e:
            raise UploadError(f"Upload failed for {artifact.filename}: {e}") from e

        try:
            result = await self.detector.submit_scan(image_url, scan_type)
        except DetectionError as e:
            raise DetectionError(f"Detection failed for {artifact.filename}: {e}") from e

        await self.alerter.maybe_raise_alert(result.report_id, scan_type)

        logger.info(
            f"Scan complete for {artifact.filename}",
            emoji=LogEmoji.SUCCESS,
            extra_context={
                "report_id": result.report_id,
                "scan_type": scan_type.value,
                "pest_count": result.pest_count,
            },
        )
        return result.report_id

    async def submit_batch(
        self, files: Iterable[CapturedArtifact], scan_type: ScanType
    ) -> BatchScanResult:
        """
        Scan a user-selected batch of files in order.

        Processing stops at the first failing file. Files before it stay
        processed; later files are never attempted.

        Raises:
            EmptySelectionError: If no files were selected
            BatchAbortedError: Naming the failing file, with the report ids
                created before it
        """
        files = list(files)
        if not files:
            raise EmptySelectionError("Please select at least one file")

        scan_type = ScanType(scan_type)
        report_ids: List[str] = []

        logger.info(
            f"Processing {len(files)} file(s) as {scan_type.label}",
            emoji=LogEmoji.PROCESSING,
        )

        for artifact in files:
            try:
                report_ids.append(await self.process_artifact(artifact, scan_type))
            except (UploadError, DetectionError) as e:
                logger.error(
                    str(e),
                    extra_context={
                        "filename": artifact.filename,
                        "processed": len(report_ids),
                        "remaining": len(files) - len(report_ids) - 1,
                    },
                )
                raise BatchAbortedError(
                    str(e), filename=artifact.filename, processed_report_ids=report_ids
                ) from e

        return BatchScanResult(scan_type=scan_type, report_ids=report_ids)

    # ------------------------------------------------------------------
    # camera flows
    # ------------------------------------------------------------------

    async def capture_still_frame(self) -> str:
        """
        Capture the current frame and scan it as a live scan.

        The camera is released once the report exists.

        Raises:
            FrameNotReadyError: If the camera has no frame to capture
        """
        artifact = await self.camera.capture_still_frame()
        report_id = await self.process_artifact(
            artifact, ScanType.CONTINUOUS_MONITORING
        )
        await self.camera.release_camera()
        return report_id

    async def start_recording(self) -> bool:
        return await self.camera.start_recording()

    async def stop_recording(self) -> Optional[str]:
        """
        Finish the recording and scan the clip as a live scan.

        Returns:
            Report id, or None when no recording was active
        """
        artifact = await self.camera.stop_recording()
        if artifact is None:
            return None

        report_id = await self.process_artifact(
            artifact, ScanType.CONTINUOUS_MONITORING
        )
        await self.camera.release_camera()
        return report_id
