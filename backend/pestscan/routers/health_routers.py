# backend/pestscan/routers/health_routers.py
"""
System health HTTP endpoints.

Reports application liveness plus the state of the owned camera session and
local classifier. Never creates either service as a side effect.
"""

from typing import Any, Dict

from fastapi import APIRouter

from ..config import settings
from ..dependencies import CAPTURE_PIPELINE, PEST_CLASSIFIER, registry
from ..utils.router_helpers import handle_exceptions
from ..utils.response_helpers import ResponseFormatter

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
@handle_exceptions("basic health check")
async def health_check() -> Dict[str, Any]:
    """Quick health check endpoint for load balancers and monitoring."""
    orchestrator = registry.peek_service(CAPTURE_PIPELINE)
    classifier = registry.peek_service(PEST_CLASSIFIER)

    return ResponseFormatter.success(
        "Service healthy",
        data={
            "status": "healthy",
            "environment": settings.environment,
            "camera": orchestrator.camera.get_status().model_dump()
            if orchestrator
            else None,
            "classifier": classifier.get_status().model_dump(mode="json")
            if classifier
            else None,
        },
    )
