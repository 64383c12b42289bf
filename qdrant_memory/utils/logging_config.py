"""
Centralized logging configuration for the application.
"""

import logging
import sys
from typing import Optional

from .config import AppConfig

PACKAGE_LOGGER = 'qdrant_memory'


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """
    Setup centralized logging configuration.

    Args:
        config: AppConfig instance, uses default if None
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    # Configure root logger
    logging.basicConfig(level=getattr(logging, config.log_level.upper()),
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        handlers=[logging.StreamHandler(sys.stdout)])
    logging.getLogger(PACKAGE_LOGGER).setLevel(getattr(logging, config.log_level.upper()))


def get_logger(name: str, config: Optional[AppConfig] = None) -> logging.Logger:
    """
    Get a logger with proper configuration.

    Args:
        name: Logger name (usually __name__)
        config: AppConfig instance, uses default if None

    Returns:
        Configured logger instance
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    logger = logging.getLogger(name)
    if not name.startswith(PACKAGE_LOGGER):
        logger.setLevel(getattr(logging, config.log_level.upper()))
    return logger


def set_debug_mode(enabled: bool, config: Optional[AppConfig] = None) -> None:
    """
    Switch the package loggers between DEBUG and the configured level.

    Module loggers inherit from the package logger, so one call covers all of them.

    Args:
        enabled: True to log retrieval and queue details
        config: AppConfig instance, uses default if None
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    level = logging.DEBUG if enabled else getattr(logging, config.log_level.upper())
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
