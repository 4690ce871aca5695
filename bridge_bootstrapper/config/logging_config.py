"""
Logging Configuration for the bridge bootstrapper

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- File rotation (1 file per day)
- Separate error log
- Console and file handlers
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional


# Log directory
LOG_DIR = Path(os.getenv("BOOTSTRAP_LOG_DIR") or Path(__file__).parent.parent.parent / "logs")

# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
) -> logging.Logger:
    """
    Setup a logger with console and file handlers.

    Args:
        name: Logger name (typically module name)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (defaults to name.log)
        console: Whether to log to console
        detailed: Whether to use detailed format (includes file/line)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("bridge_bootstrapper", level=logging.DEBUG)
        >>> logger.info("Deploying core contract")
        >>> logger.error("Step failed", exc_info=True)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    # File handler with daily rotation
    if log_file is None:
        log_file = f"{name}.log"

    file_handler = TimedRotatingFileHandler(
        LOG_DIR / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        LOG_DIR / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def log_step_event(logger: logging.Logger, event) -> None:
    """
    Log a sequencer StepEvent in structured format.

    Args:
        logger: Logger instance
        event: StepEvent emitted by the step sequencer
    """
    msg = f"{event.status.value.upper()} | {event.pipeline} | {event.step}"
    if event.phase is not None:
        msg += f" | phase: {event.phase.name}"
    if event.entries:
        entries = ", ".join(f"{k}={v}" for k, v in event.entries.items())
        msg += f" | {entries}"
    if event.elapsed is not None:
        msg += f" | {event.elapsed:.2f}s"

    if event.error is not None:
        logger.error(f"{msg} | {event.error}")
    else:
        logger.info(msg)


# Pre-configured loggers for common use cases
def get_bootstrap_logger(level: str = "INFO") -> logging.Logger:
    """Get the top-level logger used by the CLI and the sequencer observer."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    return setup_logger("bridge_bootstrapper", level=numeric, detailed=numeric <= logging.DEBUG)
