"""Logging configuration."""
import logging
import os
import sys
from pathlib import Path
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Singleton logger instance
_logger = None
_initialized = False


def _get_log_path() -> Optional[Path]:
    """Get the log file path from environment, if file logging is wanted."""
    # Read the environment directly to avoid a circular import with config
    logs_path = os.getenv("OWLPOST_LOGS_PATH")
    if not logs_path:
        return None
    return Path(logs_path) / "owlpost.log"


def _get_log_level() -> int:
    """Get log level from environment or default."""
    level_str = os.getenv("OWLPOST_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_logger() -> logging.Logger:
    """Get or create the singleton logger instance."""
    global _logger, _initialized

    if _logger is None:
        _logger = logging.getLogger("owlpost")
        _logger.setLevel(_get_log_level())
        _logger.propagate = False

    if not _initialized:
        _logger.handlers.clear()

        formatter = logging.Formatter(DEFAULT_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        _logger.addHandler(console_handler)

        log_path = _get_log_path()
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            _logger.addHandler(file_handler)

        _initialized = True

    return _logger


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Apply the configured level and format to the singleton logger."""
    log = get_logger()
    if level:
        log.setLevel(getattr(logging, level.upper(), logging.INFO))
    if fmt:
        formatter = logging.Formatter(fmt)
        for handler in log.handlers:
            handler.setFormatter(formatter)
    return log


# Export the singleton logger
logger = get_logger()
