"""Console logging for swap-router.

Logs go to stderr so that ``--json`` output on stdout can be piped.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Libraries that flood DEBUG with per-request noise.
NOISY_LOGGERS = ("web3", "urllib3", "asyncio")


class ColoredFormatter(logging.Formatter):
    """Colours the level name with ANSI codes when writing to a terminal."""

    LEVEL_COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname)
        if not self.use_color or color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{self.BOLD}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


def _resolve_level(log_level: str) -> int:
    name = log_level.upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """Install a single coloured handler on the root logger.

    At DEBUG the loggers in ``NOISY_LOGGERS`` stay at WARNING; TRACE lets
    everything through, including raw web3 request logs.
    """
    stream = stream or sys.stderr
    level = _resolve_level(log_level)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            use_color=hasattr(stream, "isatty") and stream.isatty(),
        )
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    noisy_level = TRACE if level <= TRACE else max(level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
