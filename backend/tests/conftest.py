#!/usr/bin/env python3
# backend/tests/conftest.py
"""
Pytest configuration and shared fixtures for FarmCare PestScan tests.

Provides fakes for the OpenCV capture/writer objects, in-memory remote
collaborators for the capture orchestrator, and a fake classification
pipeline for the local classifier.
"""

import io
from pathlib import Path
from typing import Dict, List, Optional, Set

import cv2
import numpy as np
import pytest
from PIL import Image

from pestscan.enums import ArtifactOrigin, ScanType
from pestscan.exceptions import DetectionError, UploadError
from pestscan.models.alert_model import AlertOutcome
from pestscan.models.capture_pipeline_models import CapturedArtifact, DetectionResult
from pestscan.services.capture_pipeline.camera_service import CameraSession
from pestscan.services.capture_pipeline.capture_orchestrator import CaptureOrchestrator
from pestscan.services.capture_pipeline.interfaces import (
    AlertRaiser,
    ArtifactStorage,
    ScanSubmitter,
)
from pestscan.services.inference_pipeline.model_preferences import ModelPreferenceStore
from pestscan.services.inference_pipeline.pest_classifier import PestClassifier


# ============================================================================
# OPENCV FAKES
# ============================================================================


class FakeVideoCapture:
    """Stands in for cv2.VideoCapture."""

    def __init__(
        self,
        device_index: int = 0,
        opened: bool = True,
        width: int = 1280,
        height: int = 720,
        deliver_frames: bool = True,
    ):
        self.device_index = device_index
        self.opened = opened
        self.width = width
        self.height = height
        self.deliver_frames = deliver_frames
        self.released = False
        self.read_count = 0
        self.properties: Dict[int, float] = {}

    def isOpened(self) -> bool:
        return self.opened and not self.released

    def set(self, prop: int, value: float) -> bool:
        self.properties[prop] = value
        return True

    def get(self, prop: int) -> float:
        if prop == cv2.CAP_PROP_FRAME_WIDTH:
            return float(self.width)
        if prop == cv2.CAP_PROP_FRAME_HEIGHT:
            return float(self.height)
        return self.properties.get(prop, 0.0)

    def read(self):
        self.read_count += 1
        if not self.deliver_frames:
            return False, None
        frame = np.full((self.height, self.width, 3), 120, dtype=np.uint8)
        return True, frame

    def release(self) -> None:
        self.released = True


class FakeVideoWriter:
    """Stands in for cv2.VideoWriter; writes a marker file on release."""

    instances: List["FakeVideoWriter"] = []
    fail_writes = False

    def __init__(self, path: str, fourcc: int, fps: float, frame_size, opened: bool = True):
        self.path = Path(path)
        self.fourcc = fourcc
        self.fps = fps
        self.frame_size = tuple(frame_size)
        self.opened = opened
        self.frames: List[np.ndarray] = []
        self.released = False
        FakeVideoWriter.instances.append(self)

    def isOpened(self) -> bool:
        return self.opened

    def write(self, frame) -> None:
        if self.fail_writes:
            raise OSError("encoder rejected frame")
        self.frames.append(frame)

    def release(self) -> None:
        if not self.released and self.opened:
            self.path.write_bytes(b"fake-mp4:" + str(len(self.frames)).encode())
        self.released = True


@pytest.fixture
def fake_capture():
    """A single fake capture device returned by the capture factory."""
    return FakeVideoCapture()


@pytest.fixture
def camera_session(fake_capture):
    """Camera session wired to fake OpenCV objects with no settle delay."""
    FakeVideoWriter.instances = []
    return CameraSession(
        device_index=0,
        metadata_timeout_seconds=0.5,
        settle_seconds=0,
        recording_fps=60,
        capture_factory=lambda index: fake_capture,
        writer_factory=FakeVideoWriter,
    )


# ============================================================================
# REMOTE COLLABORATOR FAKES
# ============================================================================


class FakeStorage(ArtifactStorage):
    """In-memory object storage; fails for filenames listed in fail_for."""

    def __init__(self, fail_for: Optional[Set[str]] = None):
        self.fail_for = fail_for or set()
        self.uploaded: List[CapturedArtifact] = []

    async def upload(self, artifact: CapturedArtifact) -> str:
        if artifact.filename in self.fail_for:
            raise UploadError("The resource already exists")
        self.uploaded.append(artifact)
        return f"https://storage.test/crop-scans/{len(self.uploaded)}.{artifact.extension}"


class FakeDetector(ScanSubmitter):
    """Returns sequential report ids; fails for URLs listed in fail_for."""

    def __init__(self, fail_for: Optional[Set[str]] = None):
        self.fail_for = fail_for or set()
        self.requests: List[tuple] = []

    async def submit_scan(self, image_url: str, scan_type: ScanType) -> DetectionResult:
        if image_url in self.fail_for:
            raise DetectionError("Edge function returned a non-2xx status code")
        self.requests.append((image_url, scan_type))
        return DetectionResult(
            reportId=f"report-{len(self.requests)}", detectionsCount=1
        )


class FakeAlerter(AlertRaiser):
    def __init__(self):
        self.calls: List[tuple] = []

    async def maybe_raise_alert(self, report_id: str, scan_type: ScanType) -> AlertOutcome:
        self.calls.append((report_id, scan_type))
        return AlertOutcome(report_id=report_id)


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def fake_detector():
    return FakeDetector()


@pytest.fixture
def fake_alerter():
    return FakeAlerter()


@pytest.fixture
def orchestrator(camera_session, fake_storage, fake_detector, fake_alerter):
    """Capture orchestrator over fakes only."""
    return CaptureOrchestrator(
        camera=camera_session,
        storage=fake_storage,
        detector=fake_detector,
        alerter=fake_alerter,
    )


def make_artifact(filename: str, mime_type: str = "image/jpeg") -> CapturedArtifact:
    return CapturedArtifact(
        content=b"\xff\xd8fake",
        mime_type=mime_type,
        origin=ArtifactOrigin.FILE_UPLOAD,
        filename=filename,
    )


# ============================================================================
# CLASSIFIER FAKES
# ============================================================================


class FakeClassificationPipeline:
    """Callable mimicking a transformers image-classification pipeline."""

    def __init__(self, results: List[dict]):
        self.results = results
        self.calls: List[dict] = []

    def __call__(self, image, top_k: int = 5):
        self.calls.append({"size": image.size, "mode": image.mode, "top_k": top_k})
        return self.results[:top_k]


class FakePipelineFactory:
    """Records (model_id, device) builds; optionally fails for some devices."""

    def __init__(self, pipeline: FakeClassificationPipeline, fail_devices=()):
        self.pipeline = pipeline
        self.fail_devices = set(fail_devices)
        self.builds: List[tuple] = []

    def __call__(self, model_id, device):
        self.builds.append((model_id, device))
        if device in self.fail_devices:
            raise RuntimeError(f"{device.value} backend unavailable")
        return self.pipeline


class FakeDownloader:
    def __init__(self, progress_steps=(25, 50, 100)):
        self.progress_steps = progress_steps
        self.downloads: List[str] = []

    def __call__(self, model_id, on_progress=None):
        self.downloads.append(model_id)
        if on_progress:
            for step in self.progress_steps:
                on_progress(step)
        return f"/cache/{model_id}"


CATERPILLAR_RESULTS = [
    {"label": "caterpillar", "score": 0.85},
    {"label": "leaf beetle", "score": 0.05},
    {"label": "corn", "score": 0.04},
]


@pytest.fixture
def preference_store(tmp_path):
    return ModelPreferenceStore(tmp_path / "preferences.json")


@pytest.fixture
def fake_pipeline():
    return FakeClassificationPipeline(CATERPILLAR_RESULTS)


@pytest.fixture
def pipeline_factory(fake_pipeline):
    return FakePipelineFactory(fake_pipeline)


@pytest.fixture
def fake_downloader():
    return FakeDownloader()


@pytest.fixture
def classifier(preference_store, pipeline_factory, fake_downloader):
    return PestClassifier(
        preference_store,
        pipeline_factory=pipeline_factory,
        downloader=fake_downloader,
        acceleration_probe=lambda: False,
    )


def make_image_bytes(size=(64, 48), image_format="PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color="green").save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def artifact_factory():
    return make_artifact


@pytest.fixture
def image_bytes_factory():
    return make_image_bytes


@pytest.fixture
def fake_capture_class():
    return FakeVideoCapture


@pytest.fixture
def fake_writer_class():
    return FakeVideoWriter
