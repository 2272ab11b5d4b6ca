import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from tasklist.config import Settings

def setup_logging(settings: Settings, max_bytes: int = 10_000_000, backup_count: int = 5) -> logging.Logger:
    """Configure the root logger: stdout, plus a rotating file when LOG_FILE is set."""
    formatter = logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    log_file: Optional[Path] = settings.LOG_FILE
    if log_file is not None:
        log_file.parent.mkdir(exist_ok=True, parents=True)
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        )

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, settings.LOG_LEVEL))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not settings.DEBUG:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    return logger
