"""Pydantic model for the webhook server CLI options.

Examples
--------
.. code-block:: python

    from slack_autoreply.cli.options import _parse_args

    opts = _parse_args(["--port", "3001"])  # ServerCliOptions
    assert opts.port == 3001
"""

from __future__ import annotations

import argparse

from pydantic import BaseModel, ConfigDict, Field


class ServerCliOptions(BaseModel):
    """Validated CLI options for the webhook server entrypoint.

    Fields
    ------
    host : str | None
        Host to bind (falls back to ``HOST`` / 0.0.0.0)
    port : int | None
        Port to listen on (falls back to ``PORT`` / 8080)
    log_level : str | None
        Logging level (falls back to ``LOG_LEVEL`` / INFO)
    log_file : str | None
        Path to log file (optional)
    log_dir : str | None
        Directory for log files (optional)
    log_format : str | None
        Log message format (optional)
    slack_token : str | None
        Slack bot token fallback (overridden by .env or environment)
    env_file : str
        Path to .env file for environment variable loading
    no_env_file : bool
        Disable loading .env file when True
    retry : int
        Retry attempts for outbound Slack API calls (>= 0)
    replay_window : int | None
        Maximum age in seconds of a signed request (falls back to ``REPLAY_WINDOW_SECONDS`` / 300)
    """

    host: str | None = None
    port: int | None = Field(None, ge=1, le=65535)
    log_level: str | None = None
    log_file: str | None = None
    log_dir: str | None = None
    log_format: str | None = None

    slack_token: str | None = None

    env_file: str = ".env"
    no_env_file: bool = False

    retry: int = Field(3, ge=0)
    replay_window: int | None = Field(None, gt=0)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def deserialize(cls, ns: argparse.Namespace) -> "ServerCliOptions":
        """Build a validated options object from argparse namespace."""
        data = {name: getattr(ns, name) for name in cls.model_fields.keys() if hasattr(ns, name)}
        return cls(**data)
