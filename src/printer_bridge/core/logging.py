"""
Unified logging setup for the printer bridge.

This module provides centralized logging configuration with:
- Custom VERBOSE logging level (level 9, more verbose than DEBUG)
- verbose() method added to the standard Logger class
- An optional payload log file recording every print job sent

Usage:
    from printer_bridge.core.logging import setup_logging, get_logger

    setup_logging(verbosity_level=2, quiet=False)  # VERBOSE level

    logger = get_logger()
    logger.verbose("This is a verbose message")
"""

import logging
from pathlib import Path
from typing import Any

# Define custom VERBOSE level (9 is between DEBUG (10) and NOTSET (0))
VERBOSE = 9
logging.addLevelName(VERBOSE, "VERBOSE")

PAYLOAD_LOGGER_ID = "payload"

DATE_FMT = "%Y-%m-%d %H:%M:%S"
LOG_FMT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PAYLOAD_LOG_FMT = "%(asctime)s - %(target)s: %(message)s"

# Number of payload bytes shown in the payload log
PAYLOAD_PREVIEW_BYTES = 32


class VerboseLogger(logging.Logger):
    def verbose(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
        """
        Log a message with severity 'VERBOSE'.

        VERBOSE is a custom level that is more verbose than DEBUG. It is used
        for raw payload dumps that would clutter DEBUG output.
        """
        if self.isEnabledFor(VERBOSE):
            self._log(VERBOSE, message, args, **kwargs)


def setup_logging(
    verbosity_level: int = 0,
    quiet: bool = False,
    payload_log_file: str | None = None,
) -> None:
    """
    Configure logging based on verbosity settings.

    Args:
        verbosity_level: Verbosity counter from CLI (Click's count=True).
            - 0: INFO level (default)
            - 1: DEBUG level (-v flag)
            - 2+: VERBOSE level (-vv or more flags)
        quiet: If True, set log level to ERROR (takes precedence over verbosity_level).
        payload_log_file: Optional path to a file that records every payload
            sent to a printer. Written by a separate logger named 'payload'
            which does not propagate to the root logger.
    """
    if quiet:
        level = logging.ERROR
    elif verbosity_level >= 2:
        level = VERBOSE
    elif verbosity_level == 1:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.setLoggerClass(VerboseLogger)

    logging.basicConfig(level=level, format=LOG_FMT, datefmt=DATE_FMT)

    setup_file_logger(payload_log_file, PAYLOAD_LOGGER_ID)


def setup_file_logger(log_file: str | None, logger_id: str) -> None:
    file_logger = logging.getLogger(logger_id)

    # Already configured
    if file_logger.handlers and \
        any(isinstance(h, logging.FileHandler) for h in file_logger.handlers):
        return

    try:
        fh: logging.Handler = logging.NullHandler()
        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)

            fh = logging.FileHandler(str(log_path), encoding="utf-8", mode="a")
            fh.setFormatter(logging.Formatter(PAYLOAD_LOG_FMT, datefmt=DATE_FMT))
            fh.setLevel(logging.INFO)

        file_logger.addHandler(fh)
        file_logger.setLevel(logging.INFO)

        # Only write to the file, never to the console
        file_logger.propagate = False

    except OSError as e:
        logging.getLogger(__name__).error(
            f"Failed to set up log file '{log_file}' for logger '{logger_id}': {e}"
        )


def get_logger(name: str | None = None) -> VerboseLogger:
    """
    Get a logger instance, ensuring it is a VerboseLogger.

    Wraps logging.getLogger so the returned logger supports verbose() even
    if it was created before setup_logging() was called.

    Args:
        name: The name of the logger to get. Defaults to the calling module.

    Returns:
        An instance of VerboseLogger.
    """
    if name is None:
        import inspect

        frame = inspect.stack()[1]
        module = inspect.getmodule(frame[0])
        name = module.__name__ if module else "__main__"

    logger = logging.getLogger(name)

    if not isinstance(logger, VerboseLogger):
        logger.__class__ = VerboseLogger

    return logger  # type: ignore


def get_payload_logger() -> logging.Logger:
    return logging.getLogger(PAYLOAD_LOGGER_ID)


def format_payload_preview(data: bytes, limit: int = PAYLOAD_PREVIEW_BYTES) -> str:
    """Hex preview of the first `limit` bytes, e.g. '1b 40 ... (+12 bytes)'."""
    preview = data[:limit].hex(" ")
    if len(data) > limit:
        preview += f" ... (+{len(data) - limit} bytes)"
    return preview


def log_payload_sent(target: str, data: bytes) -> None:
    get_payload_logger().info(
        f"Sent {len(data)} bytes: {format_payload_preview(data)}",
        extra={"target": target},
    )
