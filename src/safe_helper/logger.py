"""Console logging for safe-helper: coloured level names and a TRACE level."""

import logging
import os
import sys
from typing import TextIO

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("web3", "urllib3", "safe_eth")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name when writing to a terminal."""

    LEVEL_COLORS = {
        TRACE: "\033[90m",
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_color or color is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{color}{self.BOLD}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # other handlers see the same record
            record.levelname = levelname


def wants_color(stream: TextIO) -> bool:
    """Colour only on a terminal, and never when NO_COLOR is set."""
    if os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def resolve_level(log_level: str | None = None) -> int:
    """Map a level name (or the LOG_LEVEL env var) to a logging level."""
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(log_level: str | None = None) -> None:
    """Configure logging for the CLI.

    Logs go to stderr so command output on stdout stays machine-readable.
    Uses ``log_level`` when given, otherwise the LOG_LEVEL environment
    variable (defaults to INFO).

    When the level is DEBUG, web3, urllib3 and safe_eth loggers are set to
    WARNING to reduce noise. Use TRACE to see all of their logs.
    """
    level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ColoredFormatter(
            fmt=LOG_FORMAT, datefmt=DATE_FORMAT, use_color=wants_color(sys.stderr)
        )
    )

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    if level == logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    elif level == TRACE:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(TRACE)
