# backend/pestscan/routers/camera_routers.py
"""
Live camera HTTP endpoints.

Role: Live scan camera control
Responsibilities: Camera start/stop, still frame scans, clip recording scans
Interactions: Uses CaptureOrchestrator and its CameraSession

Architecture: API Layer - delegates all business logic to services
"""

from typing import Any, Dict

from fastapi import APIRouter

from ..dependencies import CaptureOrchestratorDep
from ..utils.router_helpers import handle_exceptions
from ..utils.response_helpers import ResponseFormatter

router = APIRouter(prefix="/camera", tags=["camera"])


@router.post("/start", response_model=Dict[str, Any])
@handle_exceptions("start camera")
async def start_camera(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    await orchestrator.camera.acquire_camera()
    return ResponseFormatter.success(
        "Camera started", data=orchestrator.camera.get_status().model_dump()
    )


@router.post("/stop", response_model=Dict[str, Any])
@handle_exceptions("stop camera")
async def stop_camera(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    await orchestrator.camera.release_camera()
    return ResponseFormatter.success("Camera stopped")


@router.get("/status", response_model=Dict[str, Any])
@handle_exceptions("get camera status")
async def get_camera_status(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    return ResponseFormatter.success(
        "Camera status retrieved", data=orchestrator.camera.get_status().model_dump()
    )


@router.post("/capture", response_model=Dict[str, Any])
@handle_exceptions("capture still frame")
async def capture_still_frame(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    """Capture the current frame and scan it as a live scan."""
    report_id = await orchestrator.capture_still_frame()
    return ResponseFormatter.success(
        "Image captured and analyzed", data={"report_id": report_id}
    )


@router.post("/recording/start", response_model=Dict[str, Any])
@handle_exceptions("start recording")
async def start_recording(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    started = await orchestrator.start_recording()
    message = "Recording started" if started else "Recording not started"
    return ResponseFormatter.success(message, data={"recording": started})


@router.post("/recording/stop", response_model=Dict[str, Any])
@handle_exceptions("stop recording")
async def stop_recording(orchestrator: CaptureOrchestratorDep) -> Dict[str, Any]:
    """Finish the recording and scan the clip as a live scan."""
    report_id = await orchestrator.stop_recording()
    if report_id is None:
        return ResponseFormatter.success("No recording in progress", data={"report_id": None})
    return ResponseFormatter.success(
        "Video uploaded and analyzed", data={"report_id": report_id}
    )
