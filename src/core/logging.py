"""
Logging setup for candidate-walker.

One root configuration per process: a stdout handler plus a dated file
(logs/walker_YYYYMMDD.log) that keeps the history of every traversal run.
Modules log through get_logger(__name__).

The Supabase client logs each HTTP request at INFO through httpx; those
loggers are held at WARNING so item progress stays readable.
"""

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional
from datetime import datetime


DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "asyncio")


def log_file_for(log_dir: Path, when: Optional[datetime] = None) -> Path:
    """Dated log file a run started at `when` writes to."""
    date_str = (when or datetime.now()).strftime("%Y%m%d")
    return Path(log_dir) / f"walker_{date_str}.log"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str] = None,
    log_dir: Path = Path("logs"),
    console: bool = True,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    Configure the root logger.

    Calling it again replaces the previous handlers, so the CLI can
    re-initialize after reading the config without duplicating lines.

    Args:
        level: Level name for the root logger and both handlers
        log_file: Explicit file path; overrides the dated file in log_dir
        log_dir: Directory of the dated walker_YYYYMMDD.log
        console: Also write to stdout
        quiet: Library loggers capped at WARNING

    Returns:
        The root logger
    """
    numeric_level = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    log_path = Path(log_file) if log_file else log_file_for(log_dir)
    log_path.parent.mkdir(exist_ok=True, parents=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    root_logger.info(f"Logging initialized - Level: {level}, File: {log_path}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def init_walker_logging(verbose: bool = False, log_dir: Path = Path("logs")) -> logging.Logger:
    """DEBUG when verbose, INFO otherwise; file under log_dir."""
    level = "DEBUG" if verbose else "INFO"
    return setup_logging(level=level, log_dir=log_dir)
