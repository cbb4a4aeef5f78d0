from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

from csv_partial_cache.config.models import LoggingSettings
from csv_partial_cache.errors import ConfigError

LOG_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def init_logging(settings: LoggingSettings, *, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger for the command line entry point.

    Library modules only emit through module-level loggers; embedding applications keep their
    own logging setup. Console output goes to stderr so stdout stays free for command results.
    """

    level = logging.getLevelNamesMapping().get(settings.level.upper())
    if level is None:
        raise ConfigError(f"Invalid logging level: {settings.level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    root_logger.addHandler(console)

    file_path = settings.file.path.strip()
    if not file_path:
        return

    log_file = Path(file_path)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            backupCount=settings.file.rotation.backup_count,
            encoding="utf-8",
        )
    except OSError:
        root_logger.error("File logging handler failed to initialize. path=%s", log_file, exc_info=True)
        return
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


__all__ = ["init_logging"]
