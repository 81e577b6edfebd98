import logging
import logging.handlers
import os
import sys
import uuid
from typing import Any, Dict, List

import structlog

SENSITIVE_KEYS = {
    "password",
    "token",
    "secret",
    "api_key",
    "api_secret",
    "access_key",
    "secret_key",
    "access_key_id",
    "secret_access_key",
    "authorization",
    "credentials",
    "credentials_path",
    "image_data",
    "base64_image",
    "raw_bytes",
}

# Chatty third-party loggers capped at WARNING
QUIET_LOGGERS = ("uvicorn.access", "PIL", "botocore", "boto3", "urllib3", "httpx")

MAX_REDACT_DEPTH = 10


def _is_sensitive(key: Any) -> bool:
    name = str(key).lower()
    return any(
        name == sensitive
        or name.endswith(f"_{sensitive}")
        or name.startswith(f"{sensitive}_")
        for sensitive in SENSITIVE_KEYS
    )


def _redact(value: Any, depth: int = 0) -> Any:
    if depth > MAX_REDACT_DEPTH:
        return "***DEPTH_LIMIT***"
    if isinstance(value, dict):
        return {
            key: "***REDACTED***" if _is_sensitive(key) else _redact(item, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item, depth + 1) for item in value]
    if isinstance(value, str) and value.startswith("data:") and ";base64," in value:
        return "***DATA_URL_REDACTED***"
    return value


def filter_sensitive_data(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask credentials and inline image payloads before rendering."""
    return _redact(event_dict)


def add_correlation_id(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Stamp the bound correlation id, or a fresh one outside a request."""
    event_dict.setdefault(
        "correlation_id",
        structlog.contextvars.get_contextvars().get("correlation_id")
        or str(uuid.uuid4()),
    )
    return event_dict


def _build_handlers(
    level: int,
    enable_file_logging: bool,
    log_dir: str,
    max_log_size_mb: int,
    backup_count: int,
) -> List[logging.Handler]:
    # stderr only; stdout carries tool output
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if enable_file_logging:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=os.path.join(log_dir, "image-worker.log"),
                maxBytes=max_log_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
    return handlers


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    enable_file_logging: bool = False,
    log_dir: str = "./logs",
    max_log_size_mb: int = 10,
    backup_count: int = 3,
) -> None:
    """Configure structlog on top of the standard logging module.

    Args:
        log_level: Level name such as DEBUG or WARNING
        json_logs: Render JSON lines instead of the console format
        enable_file_logging: Add a rotating file under ``log_dir``
        log_dir: Directory for the rotating log file
        max_log_size_mb: Rotation threshold in megabytes
        backup_count: Rotated files to keep
    """
    level = getattr(logging, log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
        filter_sensitive_data,
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=_build_handlers(
            level, enable_file_logging, log_dir, max_log_size_mb, backup_count
        ),
        level=level,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LoggingContext:
    """Bind key/value pairs to every log line emitted inside the block."""

    def __init__(self, **kwargs) -> None:
        self.context = kwargs
        self._tokens = None

    def __enter__(self) -> "LoggingContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
