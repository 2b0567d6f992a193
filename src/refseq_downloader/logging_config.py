"""Logging configuration and utilities."""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = 'refseq_downloader'


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 use_colors: bool = True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors if enabled."""
        levelname = record.levelname

        if self.use_colors and levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        result = super().format(record)
        record.levelname = levelname
        return result


class ProgressLogger:
    """Logs per-item progress of a run."""

    def __init__(self, logger: logging.Logger, total: int, operation: str = "Processing"):
        """
        Initialize progress logger.

        Args:
            logger: Logger instance to use
            total: Total number of items
            operation: Operation description
        """
        self.logger = logger
        self.total = total
        self.operation = operation
        self.processed = 0
        self.failed = 0
        self.start_time = datetime.now()

    def update(self, success: bool = True, item: Optional[str] = None):
        """Update progress."""
        self.processed += 1
        if not success:
            self.failed += 1

        progress = (self.processed / self.total) * 100 if self.total > 0 else 0
        status = "ok" if success else "failed"
        label = f" {item}" if item else ""
        self.logger.info(
            f"{self.operation}:{label} {status} "
            f"[{self.processed}/{self.total} ({progress:.1f}%)]"
        )

    def complete(self):
        """Log completion summary."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        self.logger.info(
            f"{self.operation} complete: {self.processed} items in {elapsed:.1f}s "
            f"({self.failed} failed)"
        )


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    colors: bool = True,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
    quiet: bool = False
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file, rotated at max_bytes
        console: Enable console output (stderr)
        colors: Enable colored console output
        max_bytes: Maximum log file size before rotation
        backup_count: Number of backup files to keep
        quiet: Suppress all but error logs to console

    Returns:
        The configured package logger
    """
    level = getattr(logging, log_level.upper())

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.DEBUG)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        package_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.ERROR if quiet else level)
        console_handler.setFormatter(ColoredFormatter(
            '%(levelname)s - %(message)s',
            use_colors=colors,
            stream=sys.stderr
        ))
        package_logger.addHandler(console_handler)

    package_logger.debug(f"Logging initialized - Level: {log_level}, File: {log_file}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class LogTimer:
    """Context manager for timing operations."""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        """
        Initialize timer.

        Args:
            operation: Operation description
            logger: Logger to use (defaults to performance logger)
        """
        self.operation = operation
        self.logger = logger or get_logger('performance')
        self.start_time = None

    def __enter__(self):
        """Start timing."""
        self.start_time = datetime.now()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Log elapsed time."""
        if self.start_time:
            elapsed = (datetime.now() - self.start_time).total_seconds()
            if exc_type is None:
                self.logger.debug(f"{self.operation} completed in {elapsed:.2f}s")
            else:
                self.logger.debug(f"{self.operation} failed after {elapsed:.2f}s")
