import logging
from typing import Optional

from academic_control.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "academic_control"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger once; safe to call again on app reload."""
    level_name = (level or settings.log_level).upper()
    resolved = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolved)

    # Avoid duplicate console handlers
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False
    return logger
