"""Centralized logging configuration.

Every module logs through ``logging.getLogger(__name__)``; this module wires
those loggers to a console handler and, optionally, a rotating log file.

Examples
--------
.. code-block:: python

    from slack_autoreply.logging.config import setup_logging

    setup_logging(level="DEBUG", log_file="server.log", log_dir="logs")
"""

from __future__ import annotations

import argparse
import logging
import logging.config
import pathlib
from typing import Any, Final, Optional

from slack_autoreply.settings import LogLevel, SettingModel

__all__: list[str] = [
    "DEFAULT_LOG_FORMAT",
    "add_logging_arguments",
    "setup_logging",
    "setup_logging_from_args",
]

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "asyncio")


def add_logging_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the shared logging options to an argument parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The parser to extend

    Returns
    -------
    argparse.ArgumentParser
        The same parser, for chaining
    """
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=[level.value for level in LogLevel],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file in addition to the console",
    )
    parser.add_argument(
        "--log-dir",
        default=None,
        help="Directory for the log file (default: logs)",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        help="Log message format (standard logging format string)",
    )
    return parser


def _build_config(
    level: str,
    log_file: Optional[str],
    log_dir: Optional[str],
    log_format: Optional[str],
) -> dict[str, Any]:
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stderr",
            "level": level,
        }
    }

    if log_file:
        log_path = pathlib.Path(log_file)
        if not log_path.is_absolute():
            log_path = pathlib.Path(log_dir or "logs") / log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "filename": str(log_path),
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "level": level,
        }

    handler_names = list(handlers)
    loggers: dict[str, dict[str, Any]] = {
        "": {"handlers": handler_names, "level": level},
        "slack_autoreply": {"handlers": handler_names, "level": level, "propagate": False},
        "uvicorn": {"handlers": handler_names, "level": level, "propagate": False},
        "uvicorn.access": {"handlers": handler_names, "level": level, "propagate": False},
    }
    for name in _QUIET_LOGGERS:
        loggers[name] = {"handlers": handler_names, "level": "WARNING", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": log_format or DEFAULT_LOG_FORMAT}},
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging(
    level: str = LogLevel.INFO.value,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Configure logging for the whole process.

    Parameters
    ----------
    level : str
        Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_file : Optional[str]
        File to write logs to. Relative paths are placed under ``log_dir``.
    log_dir : Optional[str]
        Directory for a relative ``log_file`` (default: ``logs``)
    log_format : Optional[str]
        Format string for log records
    """
    level = level.upper()
    if level not in LogLevel.__members__:
        raise ValueError(f"Unknown log level: {level}")
    logging.config.dictConfig(_build_config(level, log_file, log_dir, log_format))


def setup_logging_from_args(args: Any, settings: Optional[SettingModel] = None) -> None:
    """Configure logging from parsed CLI options.

    ``args`` is anything exposing ``log_level``, ``log_file``, ``log_dir`` and
    ``log_format`` attributes, such as :class:`~slack_autoreply.cli.models.ServerCliOptions`.
    Options left unset on the command line fall back to ``settings``
    (``LOG_LEVEL``, ``LOG_FILE``, ``LOG_DIR``, ``LOG_FORMAT``).
    """
    level = getattr(args, "log_level", None)
    log_file = getattr(args, "log_file", None)
    log_dir = getattr(args, "log_dir", None)
    log_format = getattr(args, "log_format", None)
    if settings is not None:
        level = level or settings.log_level.value
        log_file = log_file or settings.log_file
        log_dir = log_dir or settings.log_dir
        log_format = log_format or settings.log_format

    setup_logging(
        level=level or LogLevel.INFO.value,
        log_file=log_file,
        log_dir=log_dir,
        log_format=log_format,
    )
