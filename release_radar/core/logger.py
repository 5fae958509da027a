"""
Logging configuration for release-radar.

This module sets up the logging system with multiple outputs:
    - Console: Colored, tqdm-compatible output (always)
    - log_full_<timestamp>.log: Complete log of all events (DEBUG and above)
    - log_errors_<timestamp>.log: Only ERROR and CRITICAL level messages

The log files are only written when a log directory is configured; a
scheduled run usually points it at a persistent location so that failed
runs can be inspected afterwards.

Usage:
    from release_radar.core.logger import setup_logging, get_logger

    setup_logging(log_dir)          # Call once at startup
    logger = get_logger(__name__)   # Get logger for each module

    logger.info("Starting sync")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in the log directory)
LOG_FULL_PREFIX = "log_full"
LOG_ERRORS_PREFIX = "log_errors"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Custom formatter that adds colors to console output.

    Colors:
        - DEBUG: Gray
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        message = f"{colored_levelname}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    The artist scan shows a tqdm progress bar on stderr; plain stream
    logging would tear it apart. tqdm.write() prints above the active bar.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        # None: whatever sys.stderr is at emit time
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, level: str = "INFO") -> None:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after the
    configuration is loaded but before the Spotify session is created.

    Args:
        log_dir: Directory where log files will be created, or None for
                 console-only logging. Created if it doesn't exist.
        level: Console log level name ("DEBUG", "INFO", ...).

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add console handler (TqdmLoggingHandler) at the requested level
        3. If log_dir is given, add full and error-only file handlers named
           with this run's timestamp
        4. Quiet third-party loggers (spotipy, urllib3) to WARNING
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        file_formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

        full_handler = logging.FileHandler(
            log_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        full_handler.setLevel(logging.DEBUG)
        full_handler.setFormatter(file_formatter)
        root_logger.addHandler(full_handler)

        error_handler = logging.FileHandler(
            log_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
        )
        error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
        error_handler.setFormatter(file_formatter)
        error_handler.addFilter(ErrorOnlyFilter())
        root_logger.addHandler(error_handler)

    for noisy in ("spotipy", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Loggers obtained before setup_logging() is called have no handlers of
    their own and propagate to whatever the root logger has at emit time.
    """
    return logging.getLogger(name)


def format_track_line(track_number: int, artist_names: list[str] | tuple[str, ...], name: str) -> str:
    """Format "[3] Artist A Artist B - Title", the way tracks are listed."""
    artists = " ".join(artist_names)
    return f"[{track_number}] {artists} - {name}"


def format_added_message(line: str) -> str:
    """Format an 'Added' line in green."""
    return f"{Colors.GREEN}Added:{Colors.RESET} {line}"


def format_skipped_message(line: str) -> str:
    """Format a 'Skipped' line in yellow."""
    return f"{Colors.YELLOW}Skipped:{Colors.RESET} {line}"


def format_release_message(group: str, released_on: str, name: str, is_today: bool) -> str:
    """
    Format the "Latest album: [2024-05-17] Name" line.

    Today's releases are highlighted in blue since they are the ones that
    get expanded into candidate tracks.
    """
    message = f"Latest {group}: [{released_on}] {name}"
    if is_today:
        return f"{Colors.BLUE}{message}{Colors.RESET}"
    return message


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except Exception:
            pass
        root_logger.removeHandler(handler)
