from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from image_worker.core.constants import (
    DEFAULT_UPLOAD_SERVICE,
    MAX_INPUT_SIZE,
)


class Settings(BaseSettings):
    # Application
    app_name: str = Field(default="Image Worker", description="Application name")
    env: str = Field(
        default="development", description="Environment (development/production)"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    # API Configuration
    api_host: str = Field(default="127.0.0.1", description="API host to bind to")
    api_port: int = Field(default=8000, description="API port")
    api_prefix: str = Field(default="/api", description="API route prefix")

    # Input limits
    max_input_size: int = Field(
        default=MAX_INPUT_SIZE,
        description="Maximum bytes accepted from a path, URL or base64 source",
    )

    # Upload
    upload_service: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("UPLOAD_SERVICE", "IMAGE_WORKER_UPLOAD_SERVICE"),
        description=f"Default upload service (falls back to {DEFAULT_UPLOAD_SERVICE})",
    )

    # Logging Configuration
    logging_enabled: bool = Field(
        default=False, description="Enable file logging in addition to stderr"
    )
    log_dir: str = Field(default="./logs", description="Directory for log files")
    max_log_size_mb: int = Field(
        default=10, description="Maximum size of each log file in MB"
    )
    log_backup_count: int = Field(
        default=3, description="Number of backup log files to keep"
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v):
        allowed = ["development", "production", "testing"]
        if v not in allowed:
            raise ValueError(f"env must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("api_port")
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("api_port must be between 1 and 65535")
        return v

    @field_validator("upload_service")
    @classmethod
    def normalize_upload_service(cls, v):
        """Blank selectors count as unset; unknown ones are rejected by the factory."""
        if v is None or not v.strip():
            return None
        return v.strip().lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="IMAGE_WORKER_",
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()

