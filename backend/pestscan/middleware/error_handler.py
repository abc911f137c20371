# backend/pestscan/middleware/error_handler.py
"""
Error handling middleware for FastAPI application.

Provides centralized error handling, logging, and user-friendly error responses
while maintaining security by not exposing internal details.
"""

import traceback
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import settings
from ..enums import LogEmoji, LoggerName, LogSource
from ..exceptions import PestScanError
from ..services.logger import get_service_logger
from ..utils.router_helpers import to_http_exception

logger = get_service_logger(LoggerName.ERROR_HANDLER, LogSource.MIDDLEWARE)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Centralized error handling middleware.

    Catches all unhandled exceptions, logs them with correlation IDs,
    and returns user-friendly error responses.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.debug_mode = settings.environment == "development"

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and handle any errors that occur."""
        correlation_id = str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as exc:
            self._log_error(exc, request, correlation_id)
            return self._create_error_response(exc, correlation_id)

    def _log_error(self, exc: Exception, request: Request, correlation_id: str) -> None:
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}",
            emoji=LogEmoji.ALERT,
            exception=exc,
            extra_context={
                "correlation_id": correlation_id,
                "exception_type": type(exc).__name__,
                "client_ip": getattr(request.client, "host", "unknown"),
            },
        )

    def _create_error_response(
        self, exc: Exception, correlation_id: str
    ) -> JSONResponse:
        """Create appropriate error response based on exception type."""
        timestamp = datetime.now(timezone.utc).isoformat()

        if isinstance(exc, PestScanError):
            exc = to_http_exception(exc)

        if isinstance(exc, HTTPException):
            detail = exc.detail
            message = detail.get("message") if isinstance(detail, dict) else detail
            response_data = {
                "error": {
                    "type": "http_error",
                    "message": message,
                    "status_code": exc.status_code,
                    "correlation_id": correlation_id,
                    "timestamp": timestamp,
                }
            }
            return JSONResponse(status_code=exc.status_code, content=response_data)

        if isinstance(exc, ValidationError):
            error_details = [
                {
                    "field": " -> ".join(str(loc) for loc in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ]
            response_data = {
                "error": {
                    "type": "validation_error",
                    "message": "Request validation failed",
                    "details": error_details,
                    "correlation_id": correlation_id,
                    "timestamp": timestamp,
                }
            }
            return JSONResponse(status_code=422, content=response_data)

        response_data = {
            "error": {
                "type": "internal_error",
                "message": "An internal server error occurred",
                "correlation_id": correlation_id,
                "timestamp": timestamp,
            }
        }
        if self.debug_mode:
            response_data["error"]["exception_type"] = type(exc).__name__
            response_data["error"]["exception_message"] = str(exc)
            response_data["error"]["traceback"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=response_data)
