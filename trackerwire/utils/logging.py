"""Logging configuration for trackerwire.

trackerwire is embedded in adapter code, so the ``trackerwire`` logger is
silent unless the host opts in through the environment. Modules log with
``logging.getLogger(__name__)`` and inherit whatever is configured here.

Environment Variables:
    TRACKERWIRE_LOG: Set to "true" to enable logging (default: "false")
    TRACKERWIRE_LOG_FILE: Path to log file (default: ~/.trackerwire.log)
    TRACKERWIRE_LOG_LEVEL: Minimum level written to the file (default: DEBUG)
"""

import logging
import os
from pathlib import Path

LOGGER_NAME = "trackerwire"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"

LOG_ENABLED = os.environ.get("TRACKERWIRE_LOG", "false").lower() == "true"
LOG_FILE = Path(os.environ.get("TRACKERWIRE_LOG_FILE", str(Path.home() / ".trackerwire.log")))
LOG_LEVEL = os.environ.get("TRACKERWIRE_LOG_LEVEL", "DEBUG").upper()

_logger: logging.Logger | None = None


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name)
    # getLevelName returns "Level X" for unknown names
    return level if isinstance(level, int) else logging.DEBUG


def setup_logging() -> logging.Logger:
    """Configure the ``trackerwire`` logger once per process.

    With TRACKERWIRE_LOG=true, records at TRACKERWIRE_LOG_LEVEL or above are
    appended to TRACKERWIRE_LOG_FILE. Otherwise a NullHandler keeps the
    library quiet and records still propagate to the host's root handlers.

    Returns:
        The ``trackerwire`` logger
    """
    global _logger

    if _logger is not None:
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    if LOG_ENABLED:
        LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(LOG_FILE)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(_resolve_level(LOG_LEVEL))
    else:
        logger.addHandler(logging.NullHandler())

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the configured ``trackerwire`` logger, configuring it on first use."""
    return _logger if _logger is not None else setup_logging()


def log_message(message: str, level: int = logging.INFO) -> None:
    """Write a CLI message to the trackerwire log."""
    get_logger().log(level, message)


__all__ = [
    "LOG_ENABLED",
    "LOG_FILE",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "LOGGER_NAME",
    "setup_logging",
    "get_logger",
    "log_message",
]
