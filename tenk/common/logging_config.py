"""
Process-wide logging setup for the advisor server.

Library modules only create named loggers (``tenk.<area>.<module>``); handlers
are attached here, once, by the entry point.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LOGS_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the root logger.

    - Console handler: INFO+ to stdout
    - File handler: DEBUG+ to a rotating file (5 MB x 3), ``~/.tenk/logs/advisor.log``
      unless ``log_file`` is given

    Existing root handlers are replaced so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    root.setLevel(min(level, logging.DEBUG))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console_handler)

    log_path = Path(log_file) if log_file else LOGS_DIR / "advisor.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
    except OSError as e:
        root.warning("File logging disabled (%s): %s", log_path, e)
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    return root
