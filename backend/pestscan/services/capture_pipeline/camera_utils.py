# backend/pestscan/services/capture_pipeline/camera_utils.py
"""
Camera Capture Utilities

Pure OpenCV functions for opening a local camera, waiting for its first
frame, reading frame dimensions and encoding frames. No asyncio, no session
state; CameraSession composes these.
"""

import os
import time
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Union

import cv2

from ...constants import (
    CAMERA_METADATA_TIMEOUT_SECONDS,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    RECORDING_FOURCC,
    STILL_FRAME_JPEG_QUALITY,
)
from ...enums import LoggerName, LogSource
from ...exceptions import CameraUnavailableError, FrameNotReadyError, RecordingError
from ..logger import get_service_logger

logger = get_service_logger(LoggerName.CAMERA_SERVICE, LogSource.CAMERA)

CaptureFactory = Callable[..., Any]
WriterFactory = Callable[..., Any]

FIRST_FRAME_POLL_SECONDS = 0.05


def configure_opencv_logging() -> None:
    """
    Configure OpenCV and FFmpeg logging to suppress codec warnings.
    """
    os.environ["OPENCV_FFMPEG_LOGLEVEL"] = "-8"

    try:
        cv2.setLogLevel(3)
    except AttributeError:
        # Older OpenCV versions may not have this
        pass


def open_camera(
    device_index: int,
    width: int = DEFAULT_CAMERA_WIDTH,
    height: int = DEFAULT_CAMERA_HEIGHT,
    timeout_seconds: float = CAMERA_METADATA_TIMEOUT_SECONDS,
    capture_factory: CaptureFactory = cv2.VideoCapture,
) -> Any:
    """
    Open a local camera and request a preferred resolution.

    Args:
        device_index: OpenCV device index of the environment-facing camera
        width: Preferred frame width
        height: Preferred frame height
        timeout_seconds: Open/read timeout hint passed to the backend
        capture_factory: Constructor for the capture object (cv2.VideoCapture)

    Returns:
        Opened capture object

    Raises:
        CameraUnavailableError: If the device cannot be opened
    """
    cap = capture_factory(device_index)

    if not cap.isOpened():
        cap.release()
        raise CameraUnavailableError(f"Camera device {device_index} could not be opened")

    cap.set(cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, timeout_seconds * 1000)
    cap.set(cv2.CAP_PROP_READ_TIMEOUT_MSEC, timeout_seconds * 1000)
    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)  # Minimize latency
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

    logger.debug(
        f"Opened camera device {device_index}",
        extra_context={"requested_width": width, "requested_height": height},
    )
    return cap


def wait_for_first_frame(cap: Any, timeout_seconds: float) -> Optional[Any]:
    """
    Poll the device until it delivers a frame or the deadline passes.

    Returns:
        The first frame, or None if nothing arrived in time
    """
    deadline = time.monotonic() + timeout_seconds

    while time.monotonic() < deadline:
        ret, frame = cap.read()
        if ret and frame is not None:
            return frame
        time.sleep(FIRST_FRAME_POLL_SECONDS)

    return None


def get_frame_dimensions(cap: Any) -> Tuple[int, int]:
    """Current (width, height) reported by the capture backend."""
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
    return width, height


def encode_jpeg(frame: Any, quality: int = STILL_FRAME_JPEG_QUALITY) -> bytes:
    """
    Encode a BGR frame as JPEG.

    Raises:
        FrameNotReadyError: If the frame is empty or cannot be encoded
    """
    if frame is None or getattr(frame, "size", 0) == 0:
        raise FrameNotReadyError("No frame available to encode")

    success, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not success:
        raise FrameNotReadyError("Failed to convert frame to image")
    return buffer.tobytes()


def open_video_writer(
    output_path: Union[str, Path],
    fps: float,
    frame_size: Tuple[int, int],
    fourcc: str = RECORDING_FOURCC,
    writer_factory: WriterFactory = cv2.VideoWriter,
) -> Any:
    """
    Open a video writer for a recording session.

    Raises:
        RecordingError: If the writer cannot be opened
    """
    writer = writer_factory(
        str(output_path), cv2.VideoWriter_fourcc(*fourcc), fps, frame_size
    )
    if not writer.isOpened():
        writer.release()
        raise RecordingError(
            f"Could not open video writer ({fourcc}, {frame_size[0]}x{frame_size[1]})"
        )
    return writer


def fit_frame(frame: Any, frame_size: Tuple[int, int]) -> Any:
    """Resize a frame to the writer's size if the camera changed resolution."""
    height, width = frame.shape[:2]
    if (width, height) == tuple(frame_size):
        return frame
    return cv2.resize(frame, frame_size)
