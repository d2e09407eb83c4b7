"""
Logging setup for the ORbit scoring engine.

Every module logs through `logging.getLogger(__name__)`, so all engine
records sit under the `orbit_scoring` logger. `setup_logging()` attaches
handlers there only and leaves the host application's root logger alone.
"""
import logging
import sys
from typing import Optional

from orbit_scoring.utils.config import get_settings

PACKAGE_LOGGER = "orbit_scoring"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the engine's package logger.

    Args:
        level: Logging level name; defaults to ORBIT_LOG_LEVEL
        log_file: Optional file path; defaults to ORBIT_LOG_FILE

    Returns:
        The configured `orbit_scoring` logger
    """
    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file or settings.log_file

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(numeric_level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    # Handlers live here; records must not print twice via the root logger
    package_logger.propagate = False

    package_logger.debug(f"Logging configured at {logging.getLevelName(numeric_level)}")
    return package_logger
