"""Slack auto-reply server entry point.

Quick Start Examples
====================

**1. Run the server:**

    .. code-block:: bash

        python -m slack_autoreply --host 0.0.0.0 --port 8080

**2. Use a specific .env file, or none at all:**

    .. code-block:: bash

        python -m slack_autoreply --env-file /etc/slack-autoreply/.env
        python -m slack_autoreply --no-env-file

**3. From Python:**

    .. code-block:: python

        import asyncio
        from slack_autoreply.entry import run_slack_server

        asyncio.run(run_slack_server(port=8080, token="xoxb-...", signing_secret="..."))

Environment Variables
=====================
- **SLACK_BOT_TOKEN**: Slack bot token (required, xoxb-...)
- **SLACK_SIGNING_SECRET**: Slack signing secret for request verification (required)
- **PORT**: Port to listen on (default: 8080)
- **REPLAY_WINDOW_SECONDS**: Maximum accepted request age (default: 300)

The server refuses to start when either credential is missing.
"""

import asyncio
import logging
import os
import pathlib
import sys
from typing import Final, Optional

import uvicorn
from dotenv import load_dotenv

from slack_autoreply.logging.config import setup_logging_from_args
from slack_autoreply.settings import MissingCredentialsError, get_settings

from .cli.options import _parse_args
from .server import create_slack_app, initialize_slack_client

__all__: list[str] = [
    "run_slack_server",
    "main",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


async def run_slack_server(
    host: str = "0.0.0.0",
    port: int = 8080,
    token: Optional[str] = None,
    signing_secret: Optional[str] = None,
    retry: int = 3,
    replay_window: Optional[int] = None,
) -> None:
    """Run the Slack events server.

    Parameters
    ----------
    host : str, optional
        The host interface to listen on. Default is "0.0.0.0" (all interfaces).
    port : int, optional
        The port number to listen on. Default is 8080.
    token : Optional[str], optional
        The Slack bot token to use. If None, will use SLACK_BOT_TOKEN from settings.
    signing_secret : Optional[str], optional
        The Slack signing secret. If None, will use SLACK_SIGNING_SECRET from settings.
    retry : int, optional
        Number of retry attempts for Slack API operations. Default is 3.
        Set to 0 to disable retries.
    replay_window : Optional[int], optional
        Maximum accepted request age in seconds. If None, uses settings (300).

    Raises
    ------
    MissingCredentialsError
        If no signing secret is configured
    ValueError
        If no bot token is configured
    """
    app = create_slack_app(signing_secret=signing_secret, replay_window=replay_window)

    initialize_slack_client(token, retry=retry)

    _LOG.info(f"Server starting on {host}:{port}")
    config = uvicorn.Config(app=app, host=host, port=port, log_config=None)
    server = uvicorn.Server(config=config)
    await server.serve()


def main(argv: Optional[list[str]] = None) -> None:
    """Run the Slack auto-reply server as a standalone application.

    Parses command-line arguments, sets up logging, loads the .env file,
    checks that both Slack credentials are present, and serves until stopped.

    Parameters
    ----------
    argv : Optional[list[str]], optional
        Command-line arguments to parse. If None, uses sys.argv.

    Notes
    -----
    The Slack bot token can be provided via (highest priority first):
      1. .env file
      2. SLACK_BOT_TOKEN environment variable
      3. --slack-token command-line argument
    """
    args = _parse_args(argv)

    # CLI token is only a fallback, the .env file below overrides it
    if args.slack_token:
        os.environ["SLACK_BOT_TOKEN"] = args.slack_token

    env_path: Optional[pathlib.Path] = None
    env_loaded = False
    if not args.no_env_file:
        env_path = pathlib.Path(args.env_file)
        env_loaded = env_path.exists()
        if env_loaded:
            load_dotenv(dotenv_path=env_path, override=True)

    settings = get_settings(env_file=args.env_file, no_env_file=args.no_env_file, force_reload=True)

    # LOG_* settings may come from the .env file, so logging is set up only now
    setup_logging_from_args(args, settings)

    if args.slack_token:
        _LOG.info("Using Slack token from command line argument (fallback)")
    if env_path is not None:
        if env_loaded:
            _LOG.info(f"Loaded environment variables from {env_path.resolve()}")
        else:
            _LOG.warning(f"Environment file not found: {env_path.resolve()}")

    try:
        token, signing_secret = settings.require_credentials()
    except MissingCredentialsError as e:
        _LOG.critical(str(e))
        sys.exit(1)

    asyncio.run(
        run_slack_server(
            host=args.host or settings.host,
            port=args.port or settings.port,
            token=token,
            signing_secret=signing_secret,
            retry=args.retry,
            replay_window=args.replay_window or settings.replay_window_seconds,
        )
    )


if __name__ == "__main__":
    main()
