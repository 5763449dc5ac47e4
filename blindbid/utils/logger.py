"""
Logging for BlindBid.

Every module logs through a child of the "blindbid" logger obtained with
get_logger(). Importing the package configures nothing: the root carries a
NullHandler until an application (the CLI, or a host embedding the auction)
calls setup_logging(). Calling it again replaces the handlers it installed
earlier, so a later --debug or a new log directory takes effect.

Level conventions:
    INFO     auction lifecycle (created, restored, new highest bid, finalized)
    DEBUG    per-bid detail (placements, non-matching reveals, payments)
    WARNING  operations rolled back
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import colorlog

ROOT_LOGGER = "blindbid"
LOG_FILE = "blindbid.log"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


class BlindBidLogger:
    """Owns the handlers installed on the "blindbid" logger."""

    _handlers: List[logging.Handler] = []

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
        stream: Optional[TextIO] = None,
    ) -> logging.Logger:
        """
        (Re)configure BlindBid logging.

        Args:
            level: Threshold for the package and its handlers
            log_dir: Directory for blindbid.log (./logs when None)
            log_to_file: Also write plain-text records to a file
            stream: Console stream; stderr when None

        Returns:
            The configured "blindbid" logger
        """
        cls.reset()
        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(level)

        console = colorlog.StreamHandler(stream or sys.stderr)
        console.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        )
        cls._handlers.append(console)

        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(directory / LOG_FILE, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            cls._handlers.append(file_handler)

        for handler in cls._handlers:
            handler.setLevel(level)
            root.addHandler(handler)
        return root

    @classmethod
    def reset(cls) -> None:
        """Remove handlers installed by setup(); file handlers are closed."""
        root = logging.getLogger(ROOT_LOGGER)
        for handler in cls._handlers:
            root.removeHandler(handler)
            if isinstance(handler, logging.FileHandler):
                handler.close()
        cls._handlers = []


def get_logger(name: str) -> logging.Logger:
    """Logger for one subsystem, e.g. get_logger("auction") -> blindbid.auction"""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
) -> logging.Logger:
    return BlindBidLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)
