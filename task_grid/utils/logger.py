"""
Logger module - Logging configuration and utilities

This module provides logging configuration with support for:
- Console and rotating file logging
- Configuration from .env
- Unicode-safe console output
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "task_grid"

_CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
_FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Flag to track if the package root logger has been configured
_logging_initialized = False


class SafeStreamHandler(logging.StreamHandler):
    """
    StreamHandler that never raises on characters the console cannot encode.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            try:
                self.stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = getattr(self.stream, 'encoding', None) or 'utf-8'
                safe_msg = msg.encode(encoding, errors='replace').decode(encoding)
                self.stream.write(safe_msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 'yes', 'on')


def _ensure_logging_initialized() -> None:
    """
    Configure the package root logger from .env on first use.
    This is called automatically by get_logger().
    """
    global _logging_initialized

    if _logging_initialized:
        return

    _logging_initialized = True

    from task_grid.config import EnvConfig

    EnvConfig.load_env_file()

    log_level = os.getenv("GRID_LOG_LEVEL", "INFO").upper()
    if log_level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        log_level = "INFO"
    enable_console = _env_flag("GRID_ENABLE_CONSOLE_LOGGING", "true")
    enable_file = _env_flag("GRID_ENABLE_FILE_LOGGING", "false")
    log_folder = os.getenv("GRID_LOG_FOLDER", "./logs")
    max_bytes = int(os.getenv("GRID_LOG_MAX_BYTES", "10485760"))  # 10MB default
    backup_count = int(os.getenv("GRID_LOG_BACKUP_COUNT", "5"))

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(log_level)

    if enable_console and not any(isinstance(h, SafeStreamHandler) for h in root.handlers):
        handler = SafeStreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)

    if enable_file:
        try:
            Path(log_folder).mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                os.path.join(log_folder, f"{ROOT_LOGGER_NAME}.log"),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Failed to add file handler in {log_folder}: {e}")


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the package root with .env configuration applied.

    Args:
        name: Logger name (typically __name__)
        level: Optional logging level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    _ensure_logging_initialized()

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper()))
    return logger


def set_log_level(level: str) -> None:
    """
    Change the level of the package root logger and its handlers.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
    """
    _ensure_logging_initialized()

    level = level.upper()
    if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        raise ValueError(f"Invalid log level: {level}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)
