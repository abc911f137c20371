# backend/pestscan/exceptions.py
"""
Custom exceptions for FarmCare PestScan.

Centralized location for all custom exception classes to avoid
duplicating exception definitions across modules.
"""

from typing import List, Optional


class PestScanError(Exception):
    """Base exception for all PestScan-specific errors."""

    pass


# Device errors


class CameraUnavailableError(PestScanError):
    """Custom exception for camera acquisition failures."""

    pass


class FrameNotReadyError(PestScanError):
    """Custom exception for capturing before the video stream has dimensions."""

    pass


class RecordingError(PestScanError):
    """Custom exception for recording session failures."""

    pass


# Network errors


class UploadError(PestScanError):
    """Custom exception for object storage upload failures."""

    pass


class DetectionError(PestScanError):
    """Custom exception for remote detection function failures."""

    pass


class BatchAbortedError(PestScanError):
    """
    Raised when a batch submission stops at a failing file.

    Files processed before the failure stay processed; their report ids are
    kept on the exception.
    """

    def __init__(
        self,
        message: str,
        filename: str,
        processed_report_ids: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.filename = filename
        self.processed_report_ids = list(processed_report_ids or [])


class ModelLoadError(PestScanError):
    """Custom exception for inference model download or load failures."""

    pass


# Logged-only errors


class AlertError(PestScanError):
    """Custom exception for alert lookup or creation failures."""

    pass


# Validation errors


class ValidationError(PestScanError):
    """Custom exception for input validation failures."""

    pass


class EmptySelectionError(ValidationError):
    """Custom exception for submitting a batch with no files."""

    pass


class ConfigurationError(PestScanError):
    """Custom exception for configuration and validation errors."""

    pass
