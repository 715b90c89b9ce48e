import logging
import sys
from typing import Optional

import config


def get_logger(name: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name or "studyai")
    if logger.handlers:
        return logger
    level = logging.getLevelName(config.LOG_LEVEL.upper())
    # unknown names come back as the string "Level <name>"
    logger.setLevel(level if isinstance(level, int) else logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    fmt = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
