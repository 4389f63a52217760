"""
Logging configuration for enc_styles package.

Two streams are configured. Ordinary progress and error messages from the
``enc_styles`` loggers go to stderr (stdout is reserved for style documents
printed by the CLI). Compile diagnostics, the missing symbols and malformed
attribute values recorded by :class:`~enc_styles.symbology.diagnostics.Diagnostics`,
go through their own logger and format so they can be told apart from log
lines, and can be collected in a separate file.
"""

import logging
import os
import sys
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(levelname)s: %(message)s"
DIAGNOSTIC_FORMAT = "%(levelname)s [%(diagnostic_kind)s] %(object_class)s: %(message)s"

PACKAGE_LOGGER = "enc_styles"
DIAGNOSTICS_LOGGER = "enc_styles.symbology.diagnostics"


class _DiagnosticDefaults(logging.Filter):
    """Fill the diagnostic fields for records logged without them."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "diagnostic_kind"):
            record.diagnostic_kind = "-"
        if not getattr(record, "object_class", None):
            record.object_class = "-"
        return True


def _level_for(verbosity: int) -> int:
    if verbosity >= 1:
        return logging.DEBUG
    if verbosity == 0:
        return logging.INFO
    if verbosity == -1:
        return logging.WARNING
    return logging.ERROR


def _file_handler(path: str, formatter: logging.Formatter, logger: logging.Logger) -> None:
    try:
        handler = logging.FileHandler(path, mode='a')
    except OSError as e:
        logger.warning(f"Failed to create log file {path}: {e}")
        return
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    diagnostics_file: Optional[str] = None,
) -> None:
    """
    Configure the package and diagnostics loggers.

    Args:
        verbosity: Verbosity level (0=INFO, 1=DEBUG, -1=WARNING, -2=ERROR).
            Diagnostics are warnings, so -2 hides them on the console.
        log_file: Optional file receiving every log line at DEBUG level
        format_string: Optional custom format for package log lines
        diagnostics_file: Optional file receiving only compile diagnostics

    Environment Variables:
        ENC_STYLES_LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR)

    Example:
        >>> setup_logging(verbosity=-1, diagnostics_file="diagnostics.log")
    """
    level = _level_for(verbosity)
    env_level = os.environ.get("ENC_STYLES_LOG_LEVEL", "").upper()
    if env_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level = getattr(logging, env_level)

    if format_string is None:
        format_string = DEFAULT_FORMAT if verbosity >= 0 else SIMPLE_FORMAT

    # Keep third-party libraries quiet
    logging.root.setLevel(logging.WARNING)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.propagate = False
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(format_string))
    package_logger.addHandler(console_handler)

    # Diagnostics do not propagate to the package handlers
    diagnostics_logger = logging.getLogger(DIAGNOSTICS_LOGGER)
    diagnostics_logger.setLevel(min(level, logging.WARNING) if diagnostics_file else level)
    diagnostics_logger.propagate = False
    diagnostics_logger.handlers.clear()
    diagnostics_logger.filters.clear()
    diagnostics_logger.addFilter(_DiagnosticDefaults())

    diagnostics_console = logging.StreamHandler(sys.stderr)
    diagnostics_console.setLevel(level)
    diagnostics_console.setFormatter(logging.Formatter(DIAGNOSTIC_FORMAT))
    diagnostics_logger.addHandler(diagnostics_console)

    if log_file:
        _file_handler(log_file, logging.Formatter(DEFAULT_FORMAT), package_logger)
        _file_handler(log_file, logging.Formatter(DEFAULT_FORMAT), diagnostics_logger)
        package_logger.info(f"Logging to file: {log_file}")

    if diagnostics_file:
        _file_handler(diagnostics_file, logging.Formatter(DIAGNOSTIC_FORMAT), diagnostics_logger)
        package_logger.info(f"Writing diagnostics to: {diagnostics_file}")

    package_logger.debug(f"Logging configured: level={logging.getLevelName(level)}")
