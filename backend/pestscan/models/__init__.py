from .alert_model import AlertOutcome, AlertRecord, ReportSummary
from .capture_pipeline_models import (
    BatchScanResult,
    CameraStatus,
    CapturedArtifact,
    DetectionResult,
    ScanRequest,
)
from .classification_model import (
    ClassificationResult,
    ClassifierStatus,
    LabelScore,
    ModelOption,
    ModelSelection,
    ModelSelectionUpdate,
)

__all__ = [
    "AlertOutcome",
    "AlertRecord",
    "ReportSummary",
    "BatchScanResult",
    "CameraStatus",
    "CapturedArtifact",
    "DetectionResult",
    "ScanRequest",
    "ClassificationResult",
    "ClassifierStatus",
    "LabelScore",
    "ModelOption",
    "ModelSelection",
    "ModelSelectionUpdate",
]
