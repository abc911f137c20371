# backend/pestscan/config.py
from pathlib import Path
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CAMERA_METADATA_TIMEOUT_SECONDS,
    CAMERA_SETTLE_SECONDS,
    DEFAULT_CAMERA_DEVICE_INDEX,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_DETECTION_FUNCTION,
    DEFAULT_RECORDING_FPS,
    DEFAULT_STORAGE_BUCKET,
)
from .enums import LogLevel


class Settings(BaseSettings):
    environment: str = "development"

    # API
    api_host: str = Field(default="0.0.0.0", description="API host to bind to")
    api_port: int = Field(
        default=8000, ge=1, le=65535, description="API port to bind to"
    )
    api_reload: bool = Field(
        default=False, description="Enable auto-reload for development"
    )

    # CORS - use Union to handle both string and list inputs
    cors_origins: Union[str, List[str]] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins. Can be comma-separated string.",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert cors_origins to a list of strings"""
        if isinstance(self.cors_origins, str):
            return [origin.strip() for origin in self.cors_origins.split(",")]
        return self.cors_origins

    # Hosted backend (auth, storage, rows, edge functions)
    supabase_url: str = Field(
        default="http://localhost:54321", description="Hosted backend base URL"
    )
    supabase_key: str = Field(default="", description="Hosted backend API key")
    storage_bucket: str = Field(
        default=DEFAULT_STORAGE_BUCKET, description="Object storage bucket for scans"
    )
    detection_function: str = Field(
        default=DEFAULT_DETECTION_FUNCTION,
        description="Edge function invoked for remote pest detection",
    )

    # Camera
    camera_device_index: int = Field(
        default=DEFAULT_CAMERA_DEVICE_INDEX,
        ge=0,
        description="OpenCV index of the environment-facing camera",
    )
    camera_width: int = Field(default=DEFAULT_CAMERA_WIDTH, ge=1)
    camera_height: int = Field(default=DEFAULT_CAMERA_HEIGHT, ge=1)
    camera_metadata_timeout_seconds: float = Field(
        default=CAMERA_METADATA_TIMEOUT_SECONDS,
        gt=0,
        description="Time allowed for the device to deliver its first frame",
    )
    camera_settle_seconds: float = Field(
        default=CAMERA_SETTLE_SECONDS,
        ge=0,
        description="Delay before validating frame dimensions",
    )
    recording_fps: int = Field(default=DEFAULT_RECORDING_FPS, ge=1, le=60)

    # Data paths
    data_directory: str = "./data"

    @property
    def data_path(self) -> Path:
        """Get data directory as Path object"""
        return Path(self.data_directory)

    preferences_file: Optional[str] = Field(
        default=None,
        description="Model preference file (defaults to <data>/preferences.json)",
    )

    @property
    def preferences_path(self) -> Path:
        if self.preferences_file:
            return Path(self.preferences_file)
        return self.data_path / "preferences.json"

    @property
    def logs_directory(self) -> str:
        """Logs subdirectory path"""
        return str(self.data_path / "logs")

    def ensure_directories(self):
        """Create all required directories if they don't exist"""
        for directory in [self.data_path, Path(self.logs_directory)]:
            directory.mkdir(parents=True, exist_ok=True)

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (optional)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v) -> LogLevel:
        """Validate log level is one of the allowed values"""
        if isinstance(v, LogLevel):
            return v
        allowed_levels = LogLevel.__members__.keys()
        v_upper = str(v).upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(allowed_levels)}"
            )
        return LogLevel[v_upper]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values"""
        allowed_envs = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(allowed_envs)}"
            )
        return v_lower

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PESTSCAN_",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
