"""
Logging setup for the proxycheck package.

Everything logs through the standard library logger named ``proxycheck``.
:func:`configure_logging` attaches console/file handlers to it, and
:class:`StructuredLogger` is the thin wrapper the engine and services use so
each event carries a context dict alongside its message.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

LOGGER_NAME = "proxycheck"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NO_TIMESTAMP_FORMAT = "%(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Above CRITICAL so nothing is emitted
SILENT = logging.CRITICAL + 10

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "silent": SILENT,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
    SILENT: "silent",
}


def _resolve_level(level: Any) -> int:
    if isinstance(level, int):
        return level
    return LEVELS.get(str(level).lower(), logging.INFO)


def log_entry(record: logging.LogRecord) -> Dict[str, Any]:
    """Build the structured entry for a record: timestamp, level, message, context, error."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": _LEVEL_NAMES.get(record.levelno, record.levelname.lower()),
        "message": record.getMessage(),
    }
    context = getattr(record, "context", None)
    if context:
        entry["context"] = context
    error = getattr(record, "error", None)
    if error:
        entry["error"] = error
    return entry


class ContextFormatter(logging.Formatter):
    """Formats records as ``message (key=value ...)`` or as one JSON object per line."""

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = DATE_FORMAT,
        json_format: bool = False,
    ) -> None:
        super().__init__(fmt or DEFAULT_FORMAT, datefmt=datefmt)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        if self.json_format:
            return json.dumps(log_entry(record), default=str)

        output = super().format(record)

        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            output += f" ({pairs})"

        error = getattr(record, "error", None)
        if error:
            output += f"\n  Error: {error['name']}: {error['message']}"
            if error.get("code"):
                output += f" [{error['code']}]"
            if error.get("stack") and record.levelno >= logging.ERROR:
                output += f"\n  Stack: {error['stack']}"

        return output


class OutputHandler(logging.Handler):
    """Hands each structured entry to a user-supplied callable."""

    def __init__(self, output: Callable[[Dict[str, Any]], None], level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.output = output

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.output(log_entry(record))
        except Exception:
            self.handleError(record)


def _setup_default_logging() -> logging.Logger:
    """Set up default logging configuration for proxycheck."""
    logger = logging.getLogger(LOGGER_NAME)

    # Only configure if not already configured
    if not logger.handlers:
        logger.setLevel(logging.INFO)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(ContextFormatter())
        logger.addHandler(console_handler)

        # Prevent propagation to root logger to avoid duplicate messages
        logger.propagate = False

    return logger


def configure_logging(
    log_level: Any = "INFO",
    log_file: Optional[str] = None,
    error_file: Optional[str] = None,
    console_output: bool = True,
    log_format: Optional[str] = None,
    json_format: bool = False,
    timestamp: bool = True,
    output: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> logging.Logger:
    """
    Configure logging for the proxycheck package.

    Args:
        log_level: Logging level (debug, info, warn, error, silent) or a logging constant
        log_file: Path to general log file (e.g., 'proxycheck.log')
        error_file: Path to error-only log file (e.g., 'error.log')
        console_output: Whether to output logs to console/stdout
        log_format: Custom log format string
        json_format: Emit one JSON object per record instead of text
        timestamp: Include the timestamp in text output
        output: Callable receiving every structured log entry as a dict

    Returns:
        The configured ``proxycheck`` logger

    Example:
        # Basic file logging
        configure_logging(log_file='logs.log', error_file='error.log')

        # Debug level, JSON lines on stdout
        configure_logging(log_level='debug', json_format=True)
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    level = _resolve_level(log_level)
    logger.setLevel(level)
    logger.propagate = False

    if level >= SILENT:
        logger.addHandler(logging.NullHandler())
        return logger

    if log_format is None:
        log_format = DEFAULT_FORMAT if timestamp else NO_TIMESTAMP_FORMAT
    formatter = ContextFormatter(log_format, json_format=json_format)

    if output is not None:
        logger.addHandler(OutputHandler(output, level))
    elif console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Add file handler for general logs
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Add file handler for errors only
    if error_file:
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)

        error_handler = logging.FileHandler(error_file, encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        logger.addHandler(error_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.debug(
        f"Logging configured: level={log_level}, console={console_output}, "
        f"log_file={log_file}, error_file={error_file}"
    )
    return logger


def _error_context(error: BaseException) -> Dict[str, Any]:
    to_dict = getattr(error, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {
        "name": type(error).__name__,
        "message": str(error),
        "code": getattr(error, "code", None),
    }


class StructuredLogger:
    """Logger collaborator used by the engine and the services."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(LOGGER_NAME)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(
        self,
        level: int,
        message: str,
        context: Optional[Mapping[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "context": dict(context) if context else None,
            "error": _error_context(error) if error is not None else None,
        }
        self._logger.log(level, message, extra=extra)

    def debug(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self._log(logging.INFO, message, context)

    def warn(self, message: str, context: Optional[Mapping[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, context)

    warning = warn

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._log(logging.ERROR, message, context, error)

    def set_level(self, level: Any) -> None:
        self._logger.setLevel(_resolve_level(level))

    def get_level(self) -> str:
        return _LEVEL_NAMES.get(self._logger.level, logging.getLevelName(self._logger.level).lower())

    def is_enabled(self, level: Any) -> bool:
        return self._logger.isEnabledFor(_resolve_level(level))


def create_logger(options: Optional[Mapping[str, Any]] = None) -> StructuredLogger:
    """
    Build the logger for a client from its ``logging`` options.

    Without options the ``proxycheck`` logger keeps whatever handlers it
    already has (a stdout handler is added on first use). Recognized options:
    ``level``, ``format`` ("pretty" or "json"), ``timestamp``, ``output``,
    ``log_file``, ``error_file`` and ``console_output``.
    """
    if not options:
        return StructuredLogger(_setup_default_logging())

    logger = configure_logging(
        log_level=options.get("level", "info"),
        log_file=options.get("log_file"),
        error_file=options.get("error_file"),
        console_output=options.get("console_output", True),
        json_format=options.get("format") == "json",
        timestamp=options.get("timestamp", True),
        output=options.get("output"),
    )
    return StructuredLogger(logger)
