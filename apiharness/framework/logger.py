"""
================================================================================
Logging Setup & Logger Capability
================================================================================

Centralised Loguru configuration plus the small logger interface the
HTTP client logs through.

Exports:
    - Logger: Protocol with debug / info / warn / error / log
    - LoguruLogger: Default Logger backed by loguru
    - init_logger: Configure loguru sinks once per process

Usage:
    from apiharness.framework.logger import init_logger, LoguruLogger

    init_logger(level="DEBUG")
    log = LoguruLogger()
    log.info("Suite started", {"environment": "staging"})

================================================================================
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from loguru import logger

from .config_loader import ConfigLoader


DEFAULT_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Logger-interface level names mapped to loguru level names
_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}

_logger_initialized = False


class Logger(Protocol):
    """Logging capability injected into HttpClient."""

    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None: ...

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None: ...

    def warn(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None: ...

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None: ...

    def log(self, level: str, message: str, meta: Optional[Dict[str, Any]] = None) -> None: ...


class LoguruLogger:
    """
    Logger implementation forwarding to loguru.

    Metadata is bound to the record (``record["extra"]["meta"]``) and
    appended to the message as compact JSON so it shows up in plain sinks.
    """

    def __init__(self, name: str = "apiharness") -> None:
        self._logger = logger.bind(component=name)

    def debug(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("DEBUG", message, meta)

    def info(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("INFO", message, meta)

    def warn(self, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        self._emit("WARNING", message, meta)

    def error(
        self,
        message: str,
        error: Optional[BaseException] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._emit("ERROR", message, meta, error)

    def log(self, level: str, message: str, meta: Optional[Dict[str, Any]] = None) -> None:
        """Log with a level name; unknown levels are logged as info."""
        self._emit(_LEVELS.get(level.lower(), "INFO"), message, meta)

    def _emit(
        self,
        level: str,
        message: str,
        meta: Optional[Dict[str, Any]],
        error: Optional[BaseException] = None,
    ) -> None:
        text = message
        if meta:
            text = f"{message} {json.dumps(meta, ensure_ascii=False, default=str)}"
        # depth=2 reports the caller of debug()/info()/... as the log origin
        self._logger.bind(meta=meta or {}).opt(exception=error, depth=2).log(level, text)


def init_logger(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Initializes the loguru logger with standard settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_string: Log format string. Uses default if not provided.
        log_file: Optional file path to write logs to.

    Example:
        init_logger()  # Use defaults
        init_logger(level="DEBUG", log_file="logs/harness.log")
    """
    global _logger_initialized

    if _logger_initialized:
        return

    config = ConfigLoader()
    level = (level or config.get("logging.level", "INFO")).upper()
    format_string = format_string or config.get("logging.format", DEFAULT_LOG_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        format=format_string,
        level=level,
        colorize=True,
    )

    log_file = log_file or config.get("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=format_string,
            level=level,
            rotation=config.get("logging.rotation", "10 MB"),
            retention=config.get("logging.retention", "7 days"),
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {level}")


__all__ = [
    "Logger",
    "LoguruLogger",
    "init_logger",
]
