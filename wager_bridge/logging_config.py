import logging
from typing import Optional, Union

from wager_bridge.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Return a module-scoped logger with a consistent format.

    The level defaults to ``LOG_LEVEL``; origin mismatches and unhandled
    envelopes are only visible at DEBUG.
    """
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            # unknown names come back as "Level <NAME>"
            level = logging.INFO
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
