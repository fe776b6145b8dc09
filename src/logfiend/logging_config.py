"""
Consistent logging configuration for LogFiend.

Provides:
- Structured JSON logging with consistent schema
- Human-readable console output
- Per-module log level configuration
- Run correlation IDs
- Sensitive data masking (credentials never reach a log line)
"""

import contextvars
import json
import logging
import re
import sys
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# Context variable for the current inventory run
run_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)


def get_run_id() -> str | None:
    """Get the current run ID."""
    return run_id_var.get()


def set_run_id(run_id: str) -> None:
    """Set the run ID for the current context."""
    run_id_var.set(run_id)


class LogEventType(str, Enum):
    """Standard event types for categorization."""

    # Application lifecycle
    APP_START = "app.start"
    APP_STOP = "app.stop"

    # Configuration
    CONFIG_LOAD = "config.load"
    CONFIG_VALIDATE = "config.validate"
    CONFIG_SANITIZE = "config.sanitize"

    # Provider operations
    PROVIDER_CONNECT = "provider.connect"
    PROVIDER_FETCH = "provider.fetch"
    PROVIDER_PARTIAL_FAILURE = "provider.partial_failure"
    PROVIDER_ERROR = "provider.error"

    # Output
    INVENTORY_WRITE = "inventory.write"


class LogSchema(BaseModel):
    """
    Consistent schema for all log messages.

    Every JSON log line conforms to this schema.
    """

    # Required fields
    timestamp: str = Field(description="ISO 8601 timestamp in UTC")
    level: str = Field(description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    message: str = Field(description="Human-readable log message")
    logger: str = Field(description="Logger name (module path)")

    # Event categorization
    event_type: str | None = Field(
        default=None, description="Categorized event type from LogEventType enum"
    )
    run_id: str | None = Field(default=None, description="Inventory run identifier")

    # Provider context
    provider: str | None = Field(default=None, description="Provider name")
    endpoint: str | None = Field(default=None, description="Redacted provider endpoint")
    source_count: int | None = Field(default=None, description="Data sources handled")

    # Error context
    error_type: str | None = Field(default=None, description="Exception class name")
    error_message: str | None = Field(default=None, description="Exception message")
    stack_trace: str | None = Field(default=None, description="Full stack trace for errors")

    # Performance metrics
    duration_ms: float | None = Field(default=None, description="Operation duration in milliseconds")

    # Additional context
    extra: dict[str, Any] | None = Field(default=None, description="Additional structured data")

    # Source information
    source_file: str | None = None
    source_line: int | None = None
    source_function: str | None = None


# Patterns for sensitive data masking
# Order matters - full Authorization headers must come before the bare schemes
SENSITIVE_PATTERNS = [
    (
        re.compile(
            r'Authorization["\']?\s*[=:]\s*["\']?(Bearer|Basic|ApiKey|Splunk)\s+[^\s"\',}]+',
            re.IGNORECASE,
        ),
        r"Authorization: \1 ***",
    ),
    (re.compile(r"\b(Bearer|ApiKey)\s+[A-Za-z0-9\-_.=+/]+"), r"\1 ***"),
    (re.compile(r'\bSEC["\']?\s*[=:]\s*["\']?[^\s"\',}]+'), "SEC: ***"),
    # Credentials embedded in URLs
    (re.compile(r"(https?://)[^/\s:@]+:[^/\s@]+@", re.IGNORECASE), r"\1***:***@"),
    (re.compile(r'password["\']?\s*[=:]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), "password=***"),
    (re.compile(r'token["\']?\s*[=:]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), "token=***"),
    (re.compile(r'secret["\']?\s*[=:]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), "secret=***"),
    (re.compile(r'api_key["\']?\s*[=:]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), "api_key=***"),
    (re.compile(r'apikey["\']?\s*[=:]\s*["\']?([^"\'\s,}]+)', re.IGNORECASE), "apikey=***"),
    # Generic authorization - only matches values not already masked above
    (
        re.compile(
            r'authorization["\']?\s*[=:]\s*["\']?(?!(?:Bearer|Basic|ApiKey|Splunk)\s)([^"\'\s,}]+)',
            re.IGNORECASE,
        ),
        "authorization=***",
    ),
]


def mask_sensitive_data(message: str) -> str:
    """Mask sensitive data in log messages."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message",
    }
)


class StructuredLogFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs.

    Conforms to the LogSchema for consistent parsing.
    """

    def __init__(self, include_source: bool = True, mask_sensitive: bool = True):
        super().__init__()
        self.include_source = include_source
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as structured JSON."""
        message = record.getMessage()
        if self.mask_sensitive:
            message = mask_sensitive_data(message)

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": message,
            "logger": record.name,
        }

        run_id = get_run_id()
        if run_id:
            log_entry["run_id"] = run_id

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if key in LogSchema.model_fields:
                log_entry[key] = value
            else:
                extra_fields[key] = value

        if extra_fields:
            log_entry["extra"] = extra_fields

        if self.include_source:
            log_entry["source_file"] = record.filename
            log_entry["source_line"] = record.lineno
            log_entry["source_function"] = record.funcName

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type:
                log_entry["error_type"] = exc_type.__name__
            if exc_value:
                error_message = str(exc_value)
                log_entry["error_message"] = (
                    mask_sensitive_data(error_message) if self.mask_sensitive else error_message
                )
            stack_trace = self.formatException(record.exc_info)
            log_entry["stack_trace"] = (
                mask_sensitive_data(stack_trace) if self.mask_sensitive else stack_trace
            )

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Includes colors and formatting for better readability.
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, mask_sensitive: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record for human readability."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level:8}{self.RESET}"
        else:
            level = f"{level:8}"

        message = record.getMessage()
        if self.mask_sensitive:
            message = mask_sensitive_data(message)

        output = f"{timestamp} | {level} | {record.name:32} | {message}"

        run_id = get_run_id()
        if run_id:
            output = f"{timestamp} | {level} | [{run_id[:8]}] {record.name:24} | {message}"

        if record.exc_info:
            trace = "".join(traceback.format_exception(*record.exc_info))
            output += "\n" + (mask_sensitive_data(trace) if self.mask_sensitive else trace)

        return output


class StructuredLogger(logging.Logger):
    """
    Enhanced logger that supports structured logging.

    Provides convenience methods for logging with schema-compliant fields.
    """

    def _log_with_extras(
        self,
        level: int,
        msg: str,
        event_type: LogEventType | str | None = None,
        provider: str | None = None,
        endpoint: str | None = None,
        source_count: int | None = None,
        duration_ms: float | None = None,
        extra: dict[str, Any] | None = None,
        exc_info: bool = False,
        **kwargs,
    ):
        """Log with structured extra fields."""
        extra_dict = dict(extra or {})

        if event_type:
            extra_dict["event_type"] = event_type if isinstance(event_type, str) else event_type.value
        if provider:
            extra_dict["provider"] = provider
        if endpoint:
            extra_dict["endpoint"] = endpoint
        if source_count is not None:
            extra_dict["source_count"] = source_count
        if duration_ms is not None:
            extra_dict["duration_ms"] = duration_ms

        self.log(level, msg, exc_info=exc_info, extra=extra_dict, **kwargs)

    def event(
        self,
        event_type: LogEventType | str,
        msg: str,
        level: int = logging.DEBUG,
        **kwargs,
    ):
        """Log a categorized event."""
        self._log_with_extras(level, msg, event_type=event_type, **kwargs)

    def provider_error(self, provider: str, error: BaseException, msg: str | None = None):
        """Log a failed provider call."""
        self.event(
            LogEventType.PROVIDER_ERROR,
            msg or f"{provider} failed: {error}",
            level=logging.ERROR,
            provider=provider,
            extra={"error_type": type(error).__name__},
        )


class LogConfig(BaseModel):
    """Configuration for the logging system."""

    level: str = Field(default="INFO", description="Default log level")
    format: str = Field(default="human", description="Output format: 'json' or 'human'")
    include_source: bool = Field(default=True, description="Include source file/line info")
    mask_sensitive: bool = Field(default=True, description="Mask passwords and tokens")
    use_colors: bool = Field(default=True, description="Use colors in human format")

    # Per-module log levels (overrides default)
    module_levels: dict[str, str] = Field(
        default_factory=lambda: {
            "httpx": "WARNING",
            "httpcore": "WARNING",
            "logfiend": "DEBUG",
        },
        description="Per-module log level overrides",
    )

    @classmethod
    def from_document(cls, level: str, fmt: str, debug: bool = False) -> "LogConfig":
        """
        Build from the logging section of the configuration document.

        The document uses debug/info/warn/error and text/json.
        """
        level = "DEBUG" if debug else level.strip().upper()
        if level == "WARN":
            level = "WARNING"
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            level = "INFO"
        return cls(
            level=level,
            format="json" if fmt.strip().lower() == "json" else "human",
        )


def configure_logging(config: LogConfig | None = None) -> None:
    """
    Configure the root logger and all module loggers.

    Call this once at application startup.
    """
    if config is None:
        config = LogConfig()

    logging.setLoggerClass(StructuredLogger)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Allow all, filter at handler level
    root_logger.handlers.clear()

    # Logs go to stderr; stdout carries command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, config.level.upper()))

    if config.format == "json":
        formatter: logging.Formatter = StructuredLogFormatter(
            include_source=config.include_source,
            mask_sensitive=config.mask_sensitive,
        )
    else:
        formatter = HumanReadableFormatter(
            use_colors=config.use_colors,
            mask_sensitive=config.mask_sensitive,
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for module, level in config.module_levels.items():
        logging.getLogger(module).setLevel(getattr(logging, level.upper()))


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger for the given module.

    Usage:
        from logfiend.logging_config import get_logger
        logger = get_logger(__name__)
        logger.event(LogEventType.PROVIDER_FETCH, "Fetched", provider="splunk")
    """
    previous = logging.getLoggerClass()
    logging.setLoggerClass(StructuredLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous)

    if not isinstance(logger, StructuredLogger):
        # Created earlier as a plain Logger; StructuredLogger adds methods only.
        logger.__class__ = StructuredLogger
    return logger  # type: ignore[return-value]
