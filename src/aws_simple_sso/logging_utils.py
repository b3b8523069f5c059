"""Opt-in logging setup for scripts that use the SSO helper directly.

The package logger carries only a ``NullHandler`` by default, so a host
application's own logging configuration decides where records go.
``configure_logging`` attaches a stderr handler (and a file handler when
``SSO_LOG_FILE`` is set) to the ``aws_simple_sso`` logger only; the root
logger is left alone.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

from aws_simple_sso.config import load_settings

PACKAGE_LOGGER = "aws_simple_sso"

_logging_lock = threading.Lock()
_installed: list[logging.Handler] = []

_logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Route ``aws_simple_sso`` log records to stderr and an optional file.

    ``level`` and ``log_file`` default to ``SSO_LOG_LEVEL`` and
    ``SSO_LOG_FILE``. Calling it again replaces the handlers installed by the
    previous call.
    """
    settings = load_settings()
    level_name = (level or settings.logging.level).upper()
    log_file = log_file or settings.logging.file
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    with _logging_lock:
        for handler in _installed:
            package_logger.removeHandler(handler)
            handler.close()
        _installed.clear()

        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        _installed.append(stream_handler)

        if log_file:
            try:
                Path(log_file).parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_file)
                file_handler.setFormatter(formatter)
                _installed.append(file_handler)
            except OSError as exc:
                _logger.warning("Failed to open log file %s: %s", log_file, exc)

        for handler in _installed:
            package_logger.addHandler(handler)
        package_logger.setLevel(getattr(logging, level_name, logging.INFO))

    return package_logger
