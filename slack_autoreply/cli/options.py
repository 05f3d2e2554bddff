"""Command-line argument parsing for the Slack auto-reply server.

Examples
--------
.. code-block:: python

    from slack_autoreply.cli.options import _parse_args

    opts = _parse_args(["--port", "8080", "--log-level", "DEBUG"])  # ServerCliOptions
    print(opts.port, opts.log_level)
"""

from __future__ import annotations

import argparse

from slack_autoreply.logging.config import add_logging_arguments

from .models import ServerCliOptions


def _parse_args(argv: list[str] | None = None) -> ServerCliOptions:
    """Parse CLI args and build `ServerCliOptions`.

    Parameters
    ----------
    argv : list[str] | None, optional
        Argument list to parse. If None, uses sys.argv.

    Returns
    -------
    ServerCliOptions
        Validated immutable options for starting the server.
    """
    parser = argparse.ArgumentParser(description="Run the Slack auto-reply webhook server")
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: HOST environment variable or 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: PORT environment variable or 8080)",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env in current directory)",
    )
    parser.add_argument(
        "--no-env-file",
        action="store_true",
        help="Disable loading from .env file",
    )
    parser.add_argument(
        "--slack-token",
        default=None,
        help="Slack bot token (fallback if not set in .env file or SLACK_BOT_TOKEN environment variable)",
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=3,
        help="Number of retry attempts for Slack API calls (default: 3)",
    )
    parser.add_argument(
        "--replay-window",
        type=int,
        default=None,
        help="Reject signed requests older than this many seconds (default: 300)",
    )

    parser = add_logging_arguments(parser)

    return ServerCliOptions.deserialize(parser.parse_args(argv))
