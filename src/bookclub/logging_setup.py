# ABOUTME: Logging configuration: rich console output plus an optional debug log file.
# ABOUTME: Installs handlers on the "bookclub" logger so library modules only call getLogger.

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_level: str = "INFO", log_file: Path | None = None) -> logging.Logger:
    """Configure the "bookclub" logger tree.

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path; when set, everything at DEBUG and above is
            also written there.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger = logging.getLogger("bookclub")
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-5s | [%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger
