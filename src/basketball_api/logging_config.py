"""
Structured logging configuration for the Basketball API service.

JSON output is used for staging and production, a colored human-readable
format for development. Loggers are obtained with ``get_logger(__name__)``
and structured context is passed through ``extra={...}``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

SERVICE_NAME = "basketball-api"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info",
    "exc_text", "stack_info", "taskName", "message", "asctime",
})


class StructuredFormatter(logging.Formatter):
    """
    JSON log formatter.

    Every entry names the service, its environment and version so records
    from several deployments can share one sink. Extra fields attached to
    the record are nested under ``extra``; a domain exception adds its
    error code.
    """

    def __init__(
        self,
        service_name: str = SERVICE_NAME,
        environment: Optional[str] = None,
        version: Optional[str] = None,
        include_extra: bool = True,
    ):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.version = version
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if self.environment:
            log_entry["environment"] = self.environment
        if self.version:
            log_entry["version"] = self.version

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }
            error_code = getattr(record.exc_info[1], "error_code", None)
            if error_code is not None:
                log_entry["exception"]["error_code"] = getattr(error_code, "value", error_code)

        if self.include_extra:
            extra_fields = {}
            for key, value in record.__dict__.items():
                if key in _RESERVED_RECORD_ATTRS:
                    continue
                try:
                    # Ensure the value is JSON serializable
                    json.dumps(value)
                    extra_fields[key] = value
                except (TypeError, ValueError):
                    extra_fields[key] = str(value)

            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Console formatter with colors for different log levels.

    Provides human-readable output for development environments.
    """

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        level_color = self.COLORS.get(record.levelname, "")
        reset_color = self.COLORS["RESET"]

        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        parts = [
            f"{timestamp}",
            f"{level_color}{record.levelname:8}{reset_color}",
            f"{record.name}",
            f"{record.getMessage()}",
        ]

        # Add location info for errors
        if record.levelno >= logging.ERROR:
            parts.append(f"({record.filename}:{record.lineno})")

        log_line = " | ".join(parts)

        if record.exc_info:
            log_line += "\n" + self.formatException(record.exc_info)

        return log_line


def setup_logging(
    environment: str = "development",
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_json_logs: Optional[bool] = None,
    enable_console_logs: bool = True,
    service_name: str = SERVICE_NAME,
    version: Optional[str] = None,
) -> None:
    """
    Set up structured logging for the application.

    Args:
        environment: Environment name (development, staging, production)
        log_level: Minimum log level to capture
        log_file: Optional file path for log output
        enable_json_logs: Whether to use JSON formatting (auto-detected if None)
        enable_console_logs: Whether to log to console
        service_name: Service name stamped on every JSON record
        version: Service version stamped on every JSON record
    """
    if enable_json_logs is None:
        enable_json_logs = environment in ("staging", "production")

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = []
    structured = StructuredFormatter(
        service_name=service_name, environment=environment, version=version
    )

    if enable_console_logs:
        console_handler = logging.StreamHandler(sys.stdout)
        if enable_json_logs:
            console_handler.setFormatter(structured)
        else:
            console_handler.setFormatter(ColoredConsoleFormatter())
        console_handler.setLevel(numeric_level)
        handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(structured)
        file_handler.setLevel(numeric_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        handlers=handlers,
        force=True,
    )

    logger_configs = {
        "uvicorn": logging.WARNING,
        "uvicorn.access": logging.WARNING,
        "fastapi": logging.INFO,
        "sqlalchemy.engine": logging.WARNING,
        "aiosqlite": logging.WARNING,
        "basketball_api": numeric_level,
    }

    for logger_name, level in logger_configs.items():
        logging.getLogger(logger_name).setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(
        "Logging configured",
        extra={
            "log_level": log_level,
            "json_logs": enable_json_logs,
            "console_logs": enable_console_logs,
            "log_file": log_file,
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
