# backend/pestscan/constants.py
"""
Global Constants for FarmCare PestScan

Centralized location for all application constants to avoid hardcoded values
throughout the codebase.
"""

from typing import Dict, List

from .enums import AlertSeverity, ModelSize, ReportInfestationLevel

# =============================================================================
# CAMERA CAPTURE
# =============================================================================

DEFAULT_CAMERA_DEVICE_INDEX = 0
DEFAULT_CAMERA_WIDTH = 1280
DEFAULT_CAMERA_HEIGHT = 720
CAMERA_METADATA_TIMEOUT_SECONDS = 10.0
CAMERA_SETTLE_SECONDS = 0.5

STILL_FRAME_JPEG_QUALITY = 95
STILL_FRAME_MIME_TYPE = "image/jpeg"
STILL_FRAME_EXTENSION = "jpg"

RECORDING_TICK_SECONDS = 1.0
DEFAULT_RECORDING_FPS = 15
RECORDING_FOURCC = "mp4v"
RECORDING_MIME_TYPE = "video/mp4"
RECORDING_EXTENSION = "mp4"

LIVE_SCAN_FILENAME_PREFIX = "live-scan"

# =============================================================================
# HOSTED BACKEND
# =============================================================================

DEFAULT_STORAGE_BUCKET = "crop-scans"
DEFAULT_DETECTION_FUNCTION = "detect-pest"
ANALYSIS_REPORTS_TABLE = "analysis_reports"
ALERTS_TABLE = "alerts"

ALERT_TYPE_PEST_DETECTION = "Pest Detection Alert"
ALERT_RECORD_TYPE = "pest"
ALERT_PRIORITY = 1

ALERT_SEVERITY_BY_LEVEL: Dict[ReportInfestationLevel, AlertSeverity] = {
    ReportInfestationLevel.HIGH: AlertSeverity.CRITICAL,
    ReportInfestationLevel.MEDIUM: AlertSeverity.HIGH,
}

ALERT_MESSAGE_TEMPLATE = (
    "A {level} infestation level was found in your recent {scan_label}. "
    "Check report for details."
)

MIME_EXTENSIONS: Dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}

# =============================================================================
# LOCAL INFERENCE
# =============================================================================

MAX_IMAGE_DIMENSION = 512
INFERENCE_JPEG_QUALITY = 90
CLASSIFIER_TOP_K = 10
CLASSIFIER_TASK = "image-classification"

PEST_KEYWORDS: List[str] = [
    "caterpillar",
    "worm",
    "larva",
    "insect",
    "beetle",
    "moth",
    "butterfly",
    "grasshopper",
    "locust",
    "aphid",
    "mite",
    "spider",
    "ant",
    "weevil",
    "bug",
    "pest",
    "maggot",
    "grub",
    "cricket",
    "fly",
    "wasp",
    "bee",
]

ARMYWORM_KEYWORDS: List[str] = ["caterpillar", "larva", "worm"]
FALL_ARMYWORM_SENTINEL = "Fall Armyworm (suspected)"
UNKNOWN_PEST_SENTINEL = "Unknown pest"

PEST_SCORE_THRESHOLD = 0.3

# Confidence thresholds (0-100) checked from highest to lowest
INFESTATION_CRITICAL_THRESHOLD = 80
INFESTATION_HIGH_THRESHOLD = 60
INFESTATION_MODERATE_THRESHOLD = 40

DEFAULT_MODEL_SIZE = ModelSize.TINY

MODEL_OPTIONS: Dict[ModelSize, Dict[str, str]] = {
    ModelSize.TINY: {
        "id": "timm/mobilenetv4_conv_small.e2400_r224_in1k",
        "name": "Fast (10MB)",
        "size": "10MB",
        "description": "Fastest download, good for quick scans",
    },
    ModelSize.SMALL: {
        "id": "timm/mobilenetv3_small_100.lamb_in1k",
        "name": "Balanced (15MB)",
        "size": "15MB",
        "description": "Good balance of speed and accuracy",
    },
    ModelSize.MEDIUM: {
        "id": "apple/mobilevit-small",
        "name": "Accurate (80MB)",
        "size": "80MB",
        "description": "Better accuracy for detailed analysis",
    },
    ModelSize.FULL: {
        "id": "google/vit-base-patch16-224",
        "name": "Best Quality (350MB)",
        "size": "350MB",
        "description": "Highest accuracy, requires more download time",
    },
}

# Preference file keys
MODEL_SIZE_KEY = "farmcare-pest-model-size"
MODEL_CACHE_KEY = "farmcare-pest-model-cached"
