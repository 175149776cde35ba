"""Colored console logging for the command line entry point."""

from __future__ import annotations

import logging
import sys

RESET = "\033[0m"
GREY = "\033[90m"
CYAN = "\033[36m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
BOLD = "\033[1m"

LEVEL_COLORS = {
    logging.DEBUG: GREY,
    logging.INFO: GREEN,
    logging.WARNING: YELLOW,
    logging.ERROR: RED,
    logging.CRITICAL: BOLD + RED,
}


class LogFormatter(logging.Formatter):
    """Formatter that tints the level name by severity."""

    def __init__(self, use_color: bool = True) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.use_color = use_color

    def format(self, record):
        levelname = record.levelname
        if self.use_color:
            color = LEVEL_COLORS.get(record.levelno, GREEN)
            levelname = f"{color}{levelname}{RESET}"
        fmt = f"%(asctime)s {levelname} %(name)s %(message)s"
        return logging.Formatter(fmt, datefmt=self.datefmt).format(record)


def configure_logging(level: str, stream=None) -> None:
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(LogFormatter(use_color=stream.isatty()))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
