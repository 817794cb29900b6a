"""Logging setup for the HTTP handlers and maintenance scripts."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = 'hockeypool'
LEVEL_ENV = 'HOCKEYPOOL_LOG_LEVEL'

CONSOLE_FORMAT = '%(levelname)s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(name)s %(levelname)s [%(filename)s:%(lineno)d] %(message)s'


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.environ.get(LEVEL_ENV, 'INFO')
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f'Unknown log level: {level}')
        return resolved
    return level


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Union[Path, str]] = None,
) -> logging.Logger:
    """
    Attach handlers to the ``hockeypool`` logger.

    Library modules only call ``logging.getLogger('hockeypool.<module>')``;
    entry points call this once. Console output goes to stdout, which is
    all a serverless function keeps. Scripts may also pass ``log_file`` for
    a timestamped, line-numbered copy.

    Args:
        level: Level name or number (default: ``HOCKEYPOOL_LOG_LEVEL`` or INFO)
        log_file: Optional file to append detailed records to

    Raises:
        ValueError: If the level name is not a logging level
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_resolve_level(level))

    # Warm containers call this once per request
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger in the ``hockeypool`` hierarchy."""
    if name != ROOT_LOGGER and not name.startswith(f'{ROOT_LOGGER}.'):
        name = f'{ROOT_LOGGER}.{name}'
    return logging.getLogger(name)
