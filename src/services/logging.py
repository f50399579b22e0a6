"""Root logger wiring for the rentledger server and the seed command.

Both entry points log the same way: one line per record, to stdout and to a
file, at the level named by LOG_LEVEL. At DEBUG the rentals router adds
per-request timing lines.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from src.services.config import get_settings

LINE_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Driver and client loggers kept at WARNING or above
QUIET_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "httpx")


def get_log_level(default: Optional[str] = None) -> int:
    """Resolve the level from LOG_LEVEL, then Settings.log_level.

    Unknown names resolve to INFO.
    """
    name = os.getenv("LOG_LEVEL") or default or get_settings().log_level
    return LOG_LEVEL_MAP.get(name.upper(), logging.INFO)


def _attach(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LINE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)


def setup_server_logging(log_file: Optional[str] = None) -> None:
    """Point the root logger at stdout and a ledger log file.

    Handlers installed by an earlier call are dropped first, so the API
    lifespan and the seed command can both call this.

    Args:
        log_file: Log path; Settings.log_file when omitted. Missing parent
            directories are created.
    """
    log_path = Path(log_file or get_settings().log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    _attach(root, logging.StreamHandler(sys.stdout), level)
    _attach(root, logging.FileHandler(log_path), level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
