# backend/pestscan/utils/router_helpers.py
"""
Router Helper Functions

Common decorators for FastAPI routers. Maps domain exceptions to HTTP
status codes so endpoints only contain the happy path.
"""

from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple, Type

from fastapi import HTTPException

from ..enums import LoggerName, LogSource
from ..exceptions import (
    BatchAbortedError,
    CameraUnavailableError,
    DetectionError,
    FrameNotReadyError,
    ModelLoadError,
    PestScanError,
    RecordingError,
    UploadError,
    ValidationError,
)
from ..services.logger import get_service_logger
from .response_helpers import ResponseFormatter

logger = get_service_logger(LoggerName.API, LogSource.API)

# Checked in order; first match wins
ERROR_STATUS_CODES: Tuple[Tuple[Type[PestScanError], int, str], ...] = (
    (ValidationError, 400, "validation_error"),
    (CameraUnavailableError, 409, "camera_unavailable"),
    (FrameNotReadyError, 409, "frame_not_ready"),
    (RecordingError, 409, "recording_error"),
    (BatchAbortedError, 502, "batch_aborted"),
    (UploadError, 502, "upload_failed"),
    (DetectionError, 502, "detection_failed"),
    (ModelLoadError, 503, "model_unavailable"),
)


def _error_details(exc: PestScanError) -> Optional[Dict[str, Any]]:
    if isinstance(exc, BatchAbortedError):
        return {
            "filename": exc.filename,
            "processed_report_ids": exc.processed_report_ids,
        }
    return None


def to_http_exception(exc: PestScanError) -> HTTPException:
    """Translate a domain exception into an HTTPException with an error envelope."""
    for exc_type, status_code, error_code in ERROR_STATUS_CODES:
        if isinstance(exc, exc_type):
            return HTTPException(
                status_code=status_code,
                detail=ResponseFormatter.error(
                    str(exc), error_code=error_code, details=_error_details(exc)
                ),
            )
    return HTTPException(
        status_code=500,
        detail=ResponseFormatter.error(str(exc), error_code="internal_error"),
    )


def handle_exceptions(operation_name: str):
    """
    Decorator for standardized exception handling in router endpoints.

    Args:
        operation_name: Human-readable description of the operation for error messages

    Usage:
        @handle_exceptions("capture still frame")
        async def capture():
            # endpoint logic here
            pass
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except PestScanError as e:
                logger.warning(f"Failed to {operation_name}: {e}")
                raise to_http_exception(e) from e
            except Exception as e:
                logger.error(f"Error {operation_name}", exception=e)
                raise HTTPException(
                    status_code=500, detail=f"Failed to {operation_name}"
                ) from e

        return wrapper

    return decorator
