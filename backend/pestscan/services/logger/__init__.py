"""
Centralized Logger Service Module.

Usage:
    from pestscan.services.logger import get_service_logger
    from pestscan.enums import LogSource, LoggerName

    logger = get_service_logger(LoggerName.CAPTURE_PIPELINE, LogSource.PIPELINE)
    logger.info("Frame captured", extra_context={"filename": "live-scan.jpg"})
"""

# Re-export commonly used enums for convenience
from ...enums import LogEmoji, LoggerName, LogLevel, LogSource
from .logger_service import configure_logging, get_service_logger

__all__ = [
    "configure_logging",
    "get_service_logger",
    # Enums
    "LogLevel",
    "LogSource",
    "LoggerName",
    "LogEmoji",
]
