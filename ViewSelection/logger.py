"""
Logging for ViewSelection

All components log below the "ViewSelection" logger. The heuristic
configuration decides its level (verbosity) and an optional log file; every
heuristic instance re-applies its own configuration.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "ViewSelection"

# verbosity level of the configuration -> logging level
VERBOSITY_LEVELS = {0: "WARNING", 1: "INFO", 2: "DEBUG"}

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(
    name: str = ROOT_LOGGER,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    force: bool = False
) -> logging.Logger:
    """
    Attach console and/or file handlers to a logger.

    Args:
        name: Logger name
        level: Logging level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path of a log file, appended to
        console: Whether to log to stdout
        force: Replace the handlers of an already configured logger

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    if logger.handlers and not force:
        return logger

    logger.setLevel(getattr(logging, level.upper()))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger of a component, e.g. get_logger("Filter") -> "ViewSelection.Filter"
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def level_for_verbosity(verbosity: int) -> str:
    """Map a configuration verbosity (0, 1, 2, ...) to a logging level name"""
    if verbosity <= 0:
        return VERBOSITY_LEVELS[0]
    return VERBOSITY_LEVELS.get(verbosity, "DEBUG")


def configure_root_logger(verbosity: int = 1, log_file: Optional[str] = None) -> logging.Logger:
    """
    (Re)configure the ViewSelection logger for a refinement run.

    Args:
        verbosity: 0 = warnings only, 1 = progress, 2 = details
        log_file: Optional path to log file

    Returns:
        The ViewSelection logger
    """
    return setup_logger(
        name=ROOT_LOGGER,
        level=level_for_verbosity(verbosity),
        log_file=log_file,
        console=True,
        force=True
    )
