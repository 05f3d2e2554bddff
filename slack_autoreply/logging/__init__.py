"""Centralized logging configuration for the Slack auto-reply server."""

from .config import add_logging_arguments, setup_logging, setup_logging_from_args

__all__ = ["add_logging_arguments", "setup_logging", "setup_logging_from_args"]
