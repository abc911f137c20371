# backend/pestscan/enums.py
"""
Enums for FarmCare PestScan.

Centralized location for all enum definitions used across the capture
pipeline, the local inference pipeline and the logging system.
"""

from enum import Enum


# =============================================================================
# CAPTURE PIPELINE ENUMS
# =============================================================================


class ScanType(str, Enum):
    """Scan types accepted by the remote detection function."""

    QUICK_CHECK = "spot_check"
    DEEP_SCAN = "drone_flight"
    CONTINUOUS_MONITORING = "live_scan"

    @property
    def label(self) -> str:
        """Human readable label used in alert messages."""
        return _SCAN_TYPE_LABELS[self]


_SCAN_TYPE_LABELS = {
    ScanType.QUICK_CHECK: "Spot Check",
    ScanType.DEEP_SCAN: "Drone Scan",
    ScanType.CONTINUOUS_MONITORING: "Live Scan",
}


class ArtifactOrigin(str, Enum):
    """Where a captured artifact came from."""

    CAMERA_FRAME = "camera_frame"
    CAMERA_RECORDING = "camera_recording"
    FILE_UPLOAD = "file_upload"


class ReportInfestationLevel(str, Enum):
    """Infestation levels stored on remote analysis reports."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AlertSeverity(str, Enum):
    """Severity values written to alert records."""

    CRITICAL = "critical"
    HIGH = "high"


# =============================================================================
# LOCAL INFERENCE ENUMS
# =============================================================================


class InfestationLevel(str, Enum):
    """Ordinal infestation level derived from classifier confidence."""

    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _INFESTATION_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, InfestationLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, InfestationLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, InfestationLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, InfestationLevel):
            return NotImplemented
        return self.rank >= other.rank


_INFESTATION_ORDER = [
    InfestationLevel.NONE,
    InfestationLevel.LOW,
    InfestationLevel.MODERATE,
    InfestationLevel.HIGH,
    InfestationLevel.CRITICAL,
]


class ModelSize(str, Enum):
    """Pretrained classifier tiers, smallest download first."""

    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    FULL = "full"


class InferenceDevice(str, Enum):
    """Execution backends tried when building the inference pipeline."""

    ACCELERATED = "cuda"
    PORTABLE = "cpu"


class PipelineState(str, Enum):
    """Lifecycle of the local inference pipeline."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADING_FALLBACK = "loading_fallback"
    READY = "ready"


# =============================================================================
# LOGGING ENUMS
# =============================================================================


class LogLevel(str, Enum):
    """Log level constants for centralized logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSource(str, Enum):
    """Log source constants for identifying log origins."""

    API = "api"
    SYSTEM = "system"
    CAMERA = "camera"
    PIPELINE = "pipeline"
    MIDDLEWARE = "middleware"
    BACKEND = "backend"


class LogEmoji(str, Enum):
    """Type-safe emoji constants for log messages."""

    # Status emojis
    SUCCESS = "✅"
    PENDING = "⏳"
    FAILED = "❌"
    ERROR = "❌"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEBUG = "🐞"

    # Work emojis
    PROCESSING = "🔄"
    RUNNING = "▶️"
    STOPPED = "⏹️"

    # Camera/Video emojis
    CAMERA = "📹"
    VIDEO = "🎥"
    IMAGE = "🖼️"
    CAPTURE = "📸"

    # System emojis
    SYSTEM = "⚙️"
    STARTUP = "🚀"
    SHUTDOWN = "🛑"
    HEALTH = "💓"
    API = "🔌"

    # Storage/Network emojis
    STORAGE = "💾"
    NETWORK = "🌐"
    UPLOAD = "📤"

    # Notification emojis
    NOTIFICATION = "🔔"
    ALERT = "🚨"

    # Inference emojis
    ROBOT = "🤖"
    SEARCH = "🔍"
    BUG = "🐛"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    # API/Request loggers
    REQUEST_LOGGER = "request_logger"
    ERROR_HANDLER = "error_handler"
    API = "api"

    # Pipeline loggers
    CAPTURE_PIPELINE = "capture_pipeline"
    INFERENCE_PIPELINE = "inference_pipeline"

    # Service loggers
    CAMERA_SERVICE = "camera_service"
    STORAGE_SERVICE = "storage_service"
    DETECTION_SERVICE = "detection_service"
    ALERT_SERVICE = "alert_service"
    MODEL_PREFERENCES = "model_preferences"

    SYSTEM = "system"
