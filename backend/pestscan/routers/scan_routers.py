# backend/pestscan/routers/scan_routers.py
"""
File scan HTTP endpoints.

Role: Batch upload of user-selected images and videos
Interactions: Uses CaptureOrchestrator for the upload → detect → alert flow

Architecture: API Layer - delegates all business logic to services
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, Form, UploadFile

from ..dependencies import CaptureOrchestratorDep
from ..enums import ScanType
from ..services.capture_pipeline.utils import artifact_from_upload
from ..utils.router_helpers import handle_exceptions
from ..utils.response_helpers import ResponseFormatter

router = APIRouter(prefix="/scans", tags=["scans"])

GENERIC_CONTENT_TYPE = "application/octet-stream"


async def _read_artifacts(files: List[UploadFile]):
    artifacts = []
    for upload in files:
        content = await upload.read()
        content_type = upload.content_type
        if content_type == GENERIC_CONTENT_TYPE:
            content_type = None
        artifacts.append(
            artifact_from_upload(upload.filename or "upload", content, content_type)
        )
    return artifacts


@router.post("/batch", response_model=Dict[str, Any])
@handle_exceptions("process scan batch")
async def submit_scan_batch(
    orchestrator: CaptureOrchestratorDep,
    scan_type: ScanType = Form(ScanType.QUICK_CHECK),
    files: Optional[List[UploadFile]] = File(None),
) -> Dict[str, Any]:
    """
    Upload and scan files one after another.

    Stops at the first failing file; earlier reports are kept and returned
    in the error details.
    """
    artifacts = await _read_artifacts(files or [])
    result = await orchestrator.submit_batch(artifacts, scan_type)

    return ResponseFormatter.success(
        f"Processed {result.processed_count} file(s)",
        data={
            "report_id": result.first_report_id,
            "report_ids": result.report_ids,
            "scan_type": result.scan_type.value,
        },
    )
