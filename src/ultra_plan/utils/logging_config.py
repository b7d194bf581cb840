"""Logging configuration for the Ultra Plan Engine.

Configures stderr and optional rotating file logging for the
``ultra_plan`` logger hierarchy. Library modules only create loggers;
applications call ``setup_logging`` once at startup.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ultra_plan.config import get_config

# 10 MB per file, keep 5 backups
_MAX_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
_ROOT_LOGGER_NAME = "ultra_plan"


def setup_logging(
    level: str | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """Configure logging for the plan engine.

    Always adds a stderr handler. Adds a rotating file handler when a log
    directory is given (or configured via ULTRA_PLAN_LOG_DIR).

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the configured ULTRA_PLAN_LOG_LEVEL.
        log_dir: Directory for log files; the directory is created if needed.

    Returns:
        The configured ``ultra_plan`` root logger.
    """
    config = get_config()
    level = level or config.log_level
    if log_dir is None:
        log_dir = config.log_dir

    root_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers on repeated calls
    root_logger.handlers.clear()

    formatter = logging.Formatter(_LOG_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / "ultra_plan.log",
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug("logging configured level=%s file=%s", level, log_dir)
    return root_logger
