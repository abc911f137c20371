# backend/pestscan/main.py
"""
FastAPI application entry point for FarmCare PestScan.

Exposes the capture pipeline (live camera and file batches) and the local
inference classifier over HTTP. Camera and classifier are created lazily on
first use and torn down at shutdown.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .dependencies import CAPTURE_PIPELINE, registry
from .enums import LogEmoji, LoggerName, LogSource
from .middleware import ErrorHandlerMiddleware, RequestLoggerMiddleware
from .routers import camera_routers as camera
from .routers import health_routers as health
from .routers import inference_routers as inference
from .routers import scan_routers as scans
from .services.capture_pipeline.camera_utils import configure_opencv_logging
from .services.logger import configure_logging, get_service_logger

logger = get_service_logger(LoggerName.SYSTEM, LogSource.SYSTEM)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Handle application startup and shutdown"""
    settings.ensure_directories()
    configure_logging(level=settings.log_level, log_file=settings.log_file)
    configure_opencv_logging()

    logger.info(
        "Starting FarmCare PestScan API",
        emoji=LogEmoji.STARTUP,
        extra_context={
            "environment": settings.environment,
            "api_host": settings.api_host,
            "api_port": settings.api_port,
        },
    )

    yield

    orchestrator = registry.peek_service(CAPTURE_PIPELINE)
    if orchestrator is not None:
        try:
            await orchestrator.camera.release_camera()
        except Exception as e:
            logger.error("Error releasing camera during shutdown", exception=e)

    logger.info("Shutting down FarmCare PestScan API", emoji=LogEmoji.SHUTDOWN)


app = FastAPI(
    title="FarmCare PestScan API",
    description="Crop pest scanning: camera capture, remote detection and local inference",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Middleware stack (order matters: last added = first executed)
# 1. CORS (innermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Request logging (reads the correlation id set by the error handler)
app.add_middleware(RequestLoggerMiddleware)

# 3. Error handling (outermost - assigns correlation ids and catches all errors)
app.add_middleware(ErrorHandlerMiddleware)

app.include_router(scans.router, prefix="/api")
app.include_router(camera.router, prefix="/api")
app.include_router(inference.router, prefix="/api")
app.include_router(health.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": "FarmCare PestScan API", "version": "1.0.0", "docs": "/docs"}


if __name__ == "__main__":
    uvicorn.run(
        "pestscan.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.value.lower(),
    )
