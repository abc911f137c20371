"""
Centralized Logger Service for FarmCare PestScan.

Thin layer over loguru that provides:
- Console output with emoji support
- Optional file logging with rotation
- Service loggers bound to a logger name and source

Architecture:
- Type-safe enum-based configuration
- Sinks installed once at startup via configure_logging()
- Service modules call get_service_logger() at import time
"""

import sys
from typing import Any, Dict, Optional

from loguru import logger

from ...enums import LogEmoji, LoggerName, LogLevel, LogSource

CONSOLE_FORMAT = (
    "<dim>[{time:YYYY-MM-DD HH:mm:ss}]</dim> "
    "<level>{level: <8}</level> "
    "<cyan>[{extra[source]}/{extra[logger_name]}]</cyan> "
    "{extra[emoji]} <level>{message}</level>{extra[context]}"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[source]}/{extra[logger_name]} | {message}{extra[context]}"
)

LOG_FILE_ROTATION = "10 MB"
LOG_FILE_RETENTION = "14 days"

_DEFAULT_EXTRA = {
    "source": LogSource.SYSTEM.value,
    "logger_name": LoggerName.SYSTEM.value,
    "emoji": "",
    "context": "",
}


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[str] = None,
    enable_console: bool = True,
) -> None:
    """
    Install loguru sinks for the application.

    Removes any previously installed sinks so repeated calls (tests, reloads)
    don't duplicate output.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path of a rotating log file
        enable_console: Whether to log to stderr
    """
    logger.remove()
    logger.configure(extra=dict(_DEFAULT_EXTRA))

    if enable_console:
        logger.add(
            sys.stderr,
            level=level.value,
            format=CONSOLE_FORMAT,
            colorize=sys.stderr.isatty(),
        )

    if log_file:
        logger.add(
            log_file,
            level=level.value,
            format=FILE_FORMAT,
            rotation=LOG_FILE_ROTATION,
            retention=LOG_FILE_RETENTION,
            enqueue=True,
        )


def _format_context(extra_context: Optional[Dict[str, Any]]) -> str:
    if not extra_context:
        return ""
    pairs = ", ".join(f"{key}={value}" for key, value in extra_context.items())
    return f" ({pairs})"


def get_service_logger(
    logger_name: LoggerName,
    source: LogSource = LogSource.SYSTEM,
    default_emoji: Optional[LogEmoji] = None,
):
    """
    Factory function to create a pre-configured logger for a specific service.

    Emoji priority system (highest to lowest):
    1. Direct: Emoji passed directly to log method call
    2. Instance-set: Default emoji set when creating the service logger
    3. Fallback: Default emoji based on log level (ERROR, WARNING, INFO, DEBUG)

    Args:
        logger_name: The logger name enum to use for all calls
        source: The log source enum to use for all calls (defaults to SYSTEM)
        default_emoji: Instance-level default emoji that overrides level-based fallbacks

    Returns:
        ServiceLogger instance with error, warning, info, debug methods

    Example:
        logger = get_service_logger(LoggerName.CAMERA_SERVICE, LogSource.CAMERA)
        logger.info("Camera ready", emoji=LogEmoji.CAMERA)
    """

    def _resolve_emoji(
        method_emoji: Optional[LogEmoji], fallback_emoji: LogEmoji
    ) -> LogEmoji:
        if method_emoji is not None:
            return method_emoji
        if default_emoji is not None:
            return default_emoji
        return fallback_emoji

    def _emit(
        level: str,
        message: str,
        emoji: LogEmoji,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
    ):
        bound = logger.bind(
            source=source.value,
            logger_name=logger_name.value,
            emoji=emoji.value,
            context=_format_context(extra_context),
        )
        if exception is not None:
            bound = bound.opt(exception=exception)
        bound.log(level, message)

    class ServiceLogger:
        name = logger_name
        log_source = source

        @staticmethod
        def error(
            message: str,
            exception: Optional[BaseException] = None,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            **kwargs,
        ):
            """Log an error with emoji priority system."""
            _emit(
                LogLevel.ERROR.value,
                message,
                _resolve_emoji(emoji, LogEmoji.ERROR),
                extra_context,
                exception,
            )

        @staticmethod
        def warning(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            **kwargs,
        ):
            """Log a warning with emoji priority system."""
            _emit(
                LogLevel.WARNING.value,
                message,
                _resolve_emoji(emoji, LogEmoji.WARNING),
                extra_context,
            )

        @staticmethod
        def info(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            **kwargs,
        ):
            """Log an info message with emoji priority system."""
            _emit(
                LogLevel.INFO.value,
                message,
                _resolve_emoji(emoji, LogEmoji.INFO),
                extra_context,
            )

        @staticmethod
        def debug(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            **kwargs,
        ):
            """Log a debug message with emoji priority system."""
            _emit(
                LogLevel.DEBUG.value,
                message,
                _resolve_emoji(emoji, LogEmoji.DEBUG),
                extra_context,
            )

    return ServiceLogger()
