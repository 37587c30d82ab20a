"""
logger.py

Responsibility: Configures Python's standard logging for the cf-ddns process
(console output plus an optional log file).
Does NOT: decide what gets logged; every module owns its own
logging.getLogger(__name__).
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# NOTE: Set CF_DDNS_LOG_FILE to also append every log line to a file.
_LOG_FILE_ENV = "CF_DDNS_LOG_FILE"


def level_for_verbosity(verbose: int = 0, quiet: int = 0) -> int:
    """
    Maps -v/-q counts to a logging level.

    Args:
        verbose: Number of -v flags given.
        quiet: Number of -q flags given.

    Returns:
        DEBUG for any -v, WARNING for one -q, ERROR for two or more, else INFO.
    """
    if verbose:
        return logging.DEBUG
    if quiet == 1:
        return logging.WARNING
    if quiet > 1:
        return logging.ERROR
    return logging.INFO


def setup_logging(level: int = logging.INFO, log_file: str | None = None) -> None:
    """
    Installs handlers on the root logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        level: Root log level.
        log_file: Optional file path; falls back to $CF_DDNS_LOG_FILE.

    Returns:
        None
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_file = log_file or os.getenv(_LOG_FILE_ENV)
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO; keep it out of normal output.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))
