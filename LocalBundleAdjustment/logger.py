"""
Logging utility for LocalBundleAdjustment

Provides centralized logging configuration with file and console output support.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "LocalBundleAdjustment"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    force: bool = False
) -> logging.Logger:
    """
    Setup logger with file and/or console output

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console: Whether to output to console
        force: Force reconfiguration even if already configured

    Returns:
        Configured logger

    Example:
        >>> logger = setup_logger('LocalBundleAdjustment', level='DEBUG', log_file='local_ba.log')
        >>> logger.info("Scheduling started")
    """
    logger = logging.getLogger(name)

    if logger.handlers and not force:
        return logger

    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers = []

    # Format: [2025-10-31 10:15:30] [INFO] [LocalBundleAdjustment.graph] Message
    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a specific module

    Args:
        name: Module name (e.g., 'graph', 'scheduling.classifier', 'pipeline')

    Returns:
        Logger instance

    Example:
        >>> from LocalBundleAdjustment.logger import get_logger
        >>> logger = get_logger("graph")
        >>> logger.info("Graph updated")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_root_logger(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure the root LocalBundleAdjustment logger

    This should be called once by the host pipeline before the first cycle.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
    """
    setup_logger(
        name=ROOT_LOGGER_NAME,
        level=level,
        log_file=log_file,
        console=True,
        force=True
    )


def disable_console_logging() -> int:
    """
    Remove the console handlers of the package logger, keeping file logging.

    Returns:
        Number of handlers removed
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    # FileHandler subclasses StreamHandler, so match the exact type
    console_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    for handler in console_handlers:
        logger.removeHandler(handler)
    return len(console_handlers)


def set_level(level: str, area: Optional[str] = None):
    """
    Change logging level dynamically

    Args:
        level: New logging level (DEBUG, INFO, WARNING, ERROR)
        area: Only change one area (e.g. 'graph', 'scheduling.convergence');
            the whole package when None
    """
    name = ROOT_LOGGER_NAME if area is None else f"{ROOT_LOGGER_NAME}.{area}"
    logging.getLogger(name).setLevel(getattr(logging, level.upper()))
