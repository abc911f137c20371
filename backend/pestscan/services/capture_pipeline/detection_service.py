# backend/pestscan/services/capture_pipeline/detection_service.py
"""
Capture Pipeline Detection Service

Invokes the hosted pest detection function for an uploaded artifact.
"""

import asyncio
from typing import Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from ...config import settings
from ...enums import LogEmoji, LoggerName, LogSource, ScanType
from ...exceptions import DetectionError
from ...models.capture_pipeline_models import DetectionResult, ScanRequest
from ..logger import get_service_logger
from .interfaces import ScanSubmitter
from .supabase_client import HostedBackendClient, error_message

logger = get_service_logger(
    LoggerName.DETECTION_SERVICE, LogSource.BACKEND, default_emoji=LogEmoji.SEARCH
)


class SupabaseDetectionService(ScanSubmitter):
    """Remote detection over the hosted backend's edge functions."""

    def __init__(self, client: HostedBackendClient, function_name: Optional[str] = None):
        self.client = client
        self.function_name = function_name or settings.detection_function

    def _submit_sync(self, request: ScanRequest) -> DetectionResult:
        try:
            response = self.client.request(
                "POST",
                f"functions/v1/{self.function_name}",
                json=request.to_payload(),
            )
        except requests.exceptions.RequestException as e:
            raise DetectionError(str(e)) from e

        if not response.ok:
            raise DetectionError(error_message(response))

        try:
            body = response.json()
        except ValueError as e:
            raise DetectionError("Detection function returned invalid JSON") from e

        if isinstance(body, dict) and body.get("error"):
            raise DetectionError(str(body["error"]))

        try:
            return DetectionResult.model_validate(body)
        except PydanticValidationError as e:
            raise DetectionError("Detection function returned no report id") from e

    async def submit_scan(self, image_url: str, scan_type: ScanType) -> DetectionResult:
        """
        Ask the detection function to analyse an uploaded artifact.

        Args:
            image_url: Public URL of the uploaded artifact
            scan_type: Scan type recorded on the report

        Returns:
            DetectionResult with the new report id

        Raises:
            DetectionError: With the backend's message
        """
        request = ScanRequest(image_url=image_url, scan_type=scan_type)
        result = await asyncio.to_thread(self._submit_sync, request)

        logger.info(
            f"Detection complete! Found {result.pest_count} pest(s)",
            emoji=LogEmoji.BUG if result.pest_count else LogEmoji.SUCCESS,
            extra_context={"report_id": result.report_id, "scan_type": request.scan_type},
        )
        return result
