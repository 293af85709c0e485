import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(
    log_file: Optional[Union[str, Path]] = None,
    level: Optional[Union[str, int]] = None,
    max_bytes: int = 10_000_000,
    backup_count: int = 5,
) -> logging.Logger:
    settings = get_settings()
    log_path = Path(log_file) if log_file is not None else settings.log_file
    log_path.parent.mkdir(exist_ok=True, parents=True)

    logger = logging.getLogger()
    logger.setLevel(level if level is not None else settings.log_level)

    target = os.path.abspath(log_path)
    for existing in logger.handlers:
        if isinstance(existing, RotatingFileHandler) and existing.baseFilename == target:
            return logger

    handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
