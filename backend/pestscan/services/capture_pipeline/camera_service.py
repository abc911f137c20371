# backend/pestscan/services/capture_pipeline/camera_service.py
"""
Capture Pipeline Camera Service

Owned live-camera session: acquisition, still-frame capture and clip
recording for a single local device.

🎯 SERVICE SCOPE: Device lifecycle and artifact production only
- Camera acquisition with first-frame timeout and settle delay
- Still frame capture (JPEG)
- Clip recording with a frame pump and a one second duration ticker

📝 KEY ARCHITECTURAL BOUNDARIES:
- NO uploads (delegates to ArtifactStorage)
- NO detection or alerting (delegates to CaptureOrchestrator)
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Tuple

import cv2

from ...constants import (
    CAMERA_METADATA_TIMEOUT_SECONDS,
    CAMERA_SETTLE_SECONDS,
    DEFAULT_CAMERA_DEVICE_INDEX,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_RECORDING_FPS,
    RECORDING_EXTENSION,
    RECORDING_MIME_TYPE,
    RECORDING_TICK_SECONDS,
    STILL_FRAME_EXTENSION,
    STILL_FRAME_JPEG_QUALITY,
    STILL_FRAME_MIME_TYPE,
)
from ...enums import ArtifactOrigin, LogEmoji, LoggerName, LogSource
from ...exceptions import CameraUnavailableError, FrameNotReadyError, RecordingError
from ...models.capture_pipeline_models import CameraStatus, CapturedArtifact
from ..logger import get_service_logger
from . import camera_utils
from .utils import generate_capture_filename

logger = get_service_logger(
    LoggerName.CAMERA_SERVICE, LogSource.CAMERA, default_emoji=LogEmoji.CAMERA
)


class _RecordingSession:
    """State of one in-progress recording."""

    def __init__(self, writer: Any, output_path: Path, frame_size: Tuple[int, int]):
        self.writer = writer
        self.output_path = output_path
        self.frame_size = frame_size
        self.frames_written = 0
        self.duration_seconds = 0
        self.stop_event = asyncio.Event()
        self.pump_task: Optional[asyncio.Task] = None
        self.ticker_task: Optional[asyncio.Task] = None


class CameraSession:
    """
    A single live camera, owned by whoever constructs it.

    Frame reads are serialized through an asyncio lock so the recording pump
    and still captures never read the device at the same time. Acquire and
    release share a second lock so only one device handle is ever open.
    """

    def __init__(
        self,
        device_index: int = DEFAULT_CAMERA_DEVICE_INDEX,
        width: int = DEFAULT_CAMERA_WIDTH,
        height: int = DEFAULT_CAMERA_HEIGHT,
        metadata_timeout_seconds: float = CAMERA_METADATA_TIMEOUT_SECONDS,
        settle_seconds: float = CAMERA_SETTLE_SECONDS,
        recording_fps: int = DEFAULT_RECORDING_FPS,
        capture_factory: camera_utils.CaptureFactory = cv2.VideoCapture,
        writer_factory: camera_utils.WriterFactory = cv2.VideoWriter,
    ):
        """
        Initialize the camera session.

        Args:
            device_index: OpenCV index of the environment-facing camera
            width: Preferred frame width
            height: Preferred frame height
            metadata_timeout_seconds: How long to wait for the first frame
            settle_seconds: Delay after the first frame before checking size
            recording_fps: Frame rate of recorded clips
            capture_factory: Constructor for capture objects (cv2.VideoCapture)
            writer_factory: Constructor for video writers (cv2.VideoWriter)
        """
        self.device_index = device_index
        self.width = width
        self.height = height
        self.metadata_timeout_seconds = metadata_timeout_seconds
        self.settle_seconds = settle_seconds
        self.recording_fps = recording_fps
        self._capture_factory = capture_factory
        self._writer_factory = writer_factory

        self._capture: Any = None
        self._frame_size: Optional[Tuple[int, int]] = None
        self._recording: Optional[_RecordingSession] = None
        self._read_lock = asyncio.Lock()
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self._capture is not None

    @property
    def frame_dimensions(self) -> Optional[Tuple[int, int]]:
        return self._frame_size

    @property
    def is_recording(self) -> bool:
        return self._recording is not None

    @property
    def recording_duration(self) -> int:
        """Whole seconds elapsed in the current recording, 0 when idle."""
        return self._recording.duration_seconds if self._recording else 0

    # ------------------------------------------------------------------
    # device lifecycle
    # ------------------------------------------------------------------

    async def acquire_camera(self) -> None:
        """
        Open the camera and wait until it delivers frames with a real size.

        Acquiring while already active is a no-op.

        Raises:
            CameraUnavailableError: If the device cannot be opened, delivers no
                frame before the timeout, or reports zero dimensions
        """
        async with self._lifecycle_lock:
            if self._capture is not None:
                return
            await self._open_device()

    async def _open_device(self) -> None:
        logger.info(f"Starting camera {self.device_index}", emoji=LogEmoji.STARTUP)

        try:
            cap = await asyncio.to_thread(
                camera_utils.open_camera,
                self.device_index,
                self.width,
                self.height,
                self.metadata_timeout_seconds,
                self._capture_factory,
            )
        except CameraUnavailableError as e:
            logger.error(f"Camera unavailable: {e}")
            raise
        except Exception as e:
            logger.error("Error opening camera", exception=e)
            raise CameraUnavailableError(f"Unable to access camera: {e}") from e

        try:
            first_frame = await asyncio.to_thread(
                camera_utils.wait_for_first_frame, cap, self.metadata_timeout_seconds
            )
            if first_frame is None:
                raise CameraUnavailableError("Video loading timeout")

            await asyncio.sleep(self.settle_seconds)

            width, height = camera_utils.get_frame_dimensions(cap)
            if width <= 0 or height <= 0:
                # Fall back to the frame itself when the backend reports nothing
                height, width = first_frame.shape[:2]
            if width <= 0 or height <= 0:
                raise CameraUnavailableError("Camera reported invalid frame dimensions")
        except Exception as e:
            cap.release()
            if isinstance(e, CameraUnavailableError):
                logger.error(f"Camera start failed: {e}")
                raise
            logger.error("Camera start failed", exception=e)
            raise CameraUnavailableError(f"Unable to access camera: {e}") from e

        self._capture = cap
        self._frame_size = (width, height)
        logger.info(
            "Camera ready",
            emoji=LogEmoji.SUCCESS,
            extra_context={"width": width, "height": height},
        )

    async def release_camera(self) -> None:
        """Stop any recording, release the device and clear the handle."""
        async with self._lifecycle_lock:
            if self._recording is not None:
                await self._discard_recording()

            if self._capture is not None:
                self._capture.release()
                logger.info("Camera stopped", emoji=LogEmoji.STOPPED)

            self._capture = None
            self._frame_size = None

    async def _read_frame(self) -> Optional[Any]:
        async with self._read_lock:
            if self._capture is None:
                return None
            ret, frame = await asyncio.to_thread(self._capture.read)
        if not ret or frame is None:
            return None
        return frame

    # ------------------------------------------------------------------
    # still frames
    # ------------------------------------------------------------------

    async def capture_still_frame(self) -> CapturedArtifact:
        """
        Grab the current frame as a JPEG artifact.

        Raises:
            FrameNotReadyError: If no camera is active, no frame is available,
                or the stream has no dimensions yet
        """
        if self._capture is None:
            raise FrameNotReadyError("Camera is not active")
        if not self._frame_size or min(self._frame_size) <= 0:
            raise FrameNotReadyError("Video not ready. Please wait a moment.")

        frame = await self._read_frame()
        if frame is None:
            raise FrameNotReadyError("Failed to capture frame")

        content = await asyncio.to_thread(
            camera_utils.encode_jpeg, frame, STILL_FRAME_JPEG_QUALITY
        )
        artifact = CapturedArtifact(
            content=content,
            mime_type=STILL_FRAME_MIME_TYPE,
            origin=ArtifactOrigin.CAMERA_FRAME,
            filename=generate_capture_filename(STILL_FRAME_EXTENSION),
        )
        logger.info(
            f"Captured still frame {artifact.filename}",
            emoji=LogEmoji.CAPTURE,
            extra_context={"size_bytes": artifact.size_bytes},
        )
        return artifact

    # ------------------------------------------------------------------
    # recording
    # ------------------------------------------------------------------

    async def start_recording(self) -> bool:
        """
        Begin recording a clip.

        Returns:
            True if a recording started, False when no camera is active or a
            recording is already running

        Raises:
            RecordingError: If the video writer cannot be opened
        """
        if self._capture is None or self._recording is not None:
            return False

        fd, temp_path = tempfile.mkstemp(suffix=f".{RECORDING_EXTENSION}")
        os.close(fd)
        output_path = Path(temp_path)

        try:
            writer = camera_utils.open_video_writer(
                output_path,
                self.recording_fps,
                self._frame_size,
                writer_factory=self._writer_factory,
            )
        except RecordingError:
            output_path.unlink(missing_ok=True)
            raise

        recording = _RecordingSession(writer, output_path, self._frame_size)
        recording.pump_task = asyncio.create_task(self._pump_frames(recording))
        recording.ticker_task = asyncio.create_task(self._tick(recording))
        self._recording = recording

        logger.info("Recording started", emoji=LogEmoji.VIDEO)
        return True

    async def _pump_frames(self, recording: _RecordingSession) -> None:
        interval = 1.0 / max(1, self.recording_fps)
        while not recording.stop_event.is_set():
            frame = await self._read_frame()
            if frame is not None:
                frame = camera_utils.fit_frame(frame, recording.frame_size)
                await asyncio.to_thread(recording.writer.write, frame)
                recording.frames_written += 1
            await asyncio.sleep(interval)

    async def _tick(self, recording: _RecordingSession) -> None:
        while True:
            await asyncio.sleep(RECORDING_TICK_SECONDS)
            recording.duration_seconds += 1

    async def _finish_tasks(self, recording: _RecordingSession) -> None:
        recording.stop_event.set()
        if recording.ticker_task is not None:
            recording.ticker_task.cancel()
            try:
                await recording.ticker_task
            except asyncio.CancelledError:
                pass
        if recording.pump_task is not None:
            await recording.pump_task

    async def stop_recording(self) -> Optional[CapturedArtifact]:
        """
        Stop recording and finalise the clip.

        Returns:
            The recorded clip as an artifact, or None if nothing was recording

        Raises:
            RecordingError: If the frame pump failed or the recording produced
                no video data
        """
        recording = self._recording
        if recording is None:
            return None
        self._recording = None

        try:
            try:
                await self._finish_tasks(recording)
            except Exception as e:
                logger.error("Recording frame pump failed", exception=e)
                raise RecordingError(f"Recording failed: {e}") from e
            finally:
                await asyncio.to_thread(recording.writer.release)

            if recording.frames_written == 0:
                raise RecordingError("Recording produced no video data")

            content = await asyncio.to_thread(recording.output_path.read_bytes)
        finally:
            recording.output_path.unlink(missing_ok=True)

        artifact = CapturedArtifact(
            content=content,
            mime_type=RECORDING_MIME_TYPE,
            origin=ArtifactOrigin.CAMERA_RECORDING,
            filename=generate_capture_filename(RECORDING_EXTENSION),
        )
        logger.info(
            f"Recording stopped after {recording.duration_seconds}s",
            emoji=LogEmoji.STOPPED,
            extra_context={
                "frames": recording.frames_written,
                "size_bytes": artifact.size_bytes,
            },
        )
        return artifact

    async def _discard_recording(self) -> None:
        recording = self._recording
        self._recording = None
        try:
            await self._finish_tasks(recording)
        except Exception as e:
            logger.warning(f"Error stopping recording tasks: {e}")
        recording.writer.release()
        recording.output_path.unlink(missing_ok=True)
        logger.debug("Discarded in-progress recording")

    def get_status(self) -> CameraStatus:
        width, height = self._frame_size or (None, None)
        return CameraStatus(
            active=self.is_active,
            recording=self.is_recording,
            recording_duration_seconds=self.recording_duration,
            width=width,
            height=height,
        )
