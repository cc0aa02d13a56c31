"""
Common logging configuration for the genealogy import project
"""

import logging
import os
import sys


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, level: str = "INFO", log_file: str = None) -> logging.Logger:
    """
    Setup a logger with consistent formatting across the project

    Args:
        name: Logger name (typically __name__)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already configured
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_project_logger(module_name: str, verbose: bool = False) -> logging.Logger:
    """
    Get a logger configured for the genealogy import project

    The default level comes from the LOG_LEVEL environment variable so the
    parsers stay quiet in batch runs; verbose always means DEBUG.

    Args:
        module_name: Name of the module (typically __name__)
        verbose: Enable debug level logging

    Returns:
        Configured logger that logs to stdout only
    """
    level = "DEBUG" if verbose else os.environ.get('LOG_LEVEL', 'INFO')
    return setup_logger(module_name, level, log_file=None)


def set_project_log_level(level: str) -> None:
    """Change the level of every logger already created by this project"""
    numeric_level = getattr(logging, level.upper())
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and name.startswith(('genealogy_app', 'genealogy_cli', 'app')):
            logger.setLevel(numeric_level)
