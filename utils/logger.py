import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from config import config

def setup_logger(log_file: Optional[Union[str, Path]] = None, level: Optional[int] = None) -> logging.Logger:
    """Файловый лог для приложений, встраивающих DailyGrow без main.py"""
    settings = config.logging
    log_file = Path(log_file or settings.file)
    log_file.parent.mkdir(exist_ok=True, parents=True)

    root = logging.getLogger()
    root.setLevel(level if level is not None else settings.level.value)
    handler = RotatingFileHandler(log_file, maxBytes=settings.max_bytes,
                                  backupCount=settings.backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter(settings.format))
    root.addHandler(handler)
    return root
