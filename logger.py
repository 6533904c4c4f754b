import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from config import LOG_DIR, LOG_FILE, LOG_LEVEL

_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Shared by every logger in the process
_file_handler: Optional[RotatingFileHandler] = None

def _shared_file_handler() -> RotatingFileHandler:
    global _file_handler
    if _file_handler is None:
        os.makedirs(LOG_DIR, exist_ok=True)
        _file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE),
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=5,
            encoding="utf-8",
        )
        _file_handler.setFormatter(logging.Formatter(_FMT))
    return _file_handler

def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"product_trace.{name}")
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.DEBUG))

    handler = _shared_file_handler()
    if handler not in logger.handlers:
        logger.addHandler(handler)

    return logger
