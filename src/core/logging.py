"""Logging setup for the Smart Set Engine batch runner.

Every module logs through a child of the ``smartsets`` logger
(``smartsets.manager``, ``smartsets.host_api``, ``smartsets.database`` ...),
so one call to ``setup_logging`` configures the whole engine. Console output
follows the configured level; the optional log file always records DEBUG so
post-filter and host API warnings can be inspected after a batch run.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

__all__ = ["logger", "setup_logging"]

logger = logging.getLogger("smartsets")

# Third-party loggers that are noisy at DEBUG (one line per HTTP request)
_QUIET_LOGGERS = ("urllib3", "requests")


def setup_logging(
    level: int = logging.INFO,
    log_file: Path | None = None,
) -> None:
    """Configure the ``smartsets`` logger for a batch run.

    Calling it again only adjusts the level; handlers are added once.

    Args:
        level: Console level, usually ``config.get_log_level()`` or DEBUG
            for ``--verbose``.
        log_file: Optional file that receives every record at DEBUG.
    """
    logger.setLevel(logging.DEBUG if log_file is not None else level)

    if logger.handlers:
        for handler in logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Batch output goes to stdout, so keep log lines on stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
