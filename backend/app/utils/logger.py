# app/utils/logger.py

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logger() -> None:
    """Configure root logging from LOG_LEVEL. Safe to call more than once."""
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)
        return

    logging.basicConfig(level=level, format=LOG_FORMAT)
