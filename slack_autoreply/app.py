"""
FastAPI web server factory for the Slack auto-reply bot.

The application is created once per process; the request verification
middleware is attached at creation time so that every route registered
afterwards sits behind it.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Sequence, Type

from fastapi import FastAPI
from slack_sdk.signature import Clock

from slack_autoreply import __version__
from slack_autoreply._base import BaseServerFactory
from slack_autoreply.security import DEFAULT_PROTECTED_PATHS, SlackRequestVerificationMiddleware
from slack_autoreply.settings import DEFAULT_REPLAY_WINDOW_SECONDS

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

_WEB_SERVER_INSTANCE: Optional[FastAPI] = None


class WebServerFactory(BaseServerFactory[FastAPI]):
    @staticmethod
    def create(
        signing_secret: str = "",
        replay_window: int = DEFAULT_REPLAY_WINDOW_SECONDS,
        protected_paths: Sequence[str] = DEFAULT_PROTECTED_PATHS,
        clock: Optional[Clock] = None,
        **kwargs,
    ) -> FastAPI:
        """
        Create and configure the web API server.

        Args:
            signing_secret: Slack signing secret used by the verification middleware
            replay_window: Maximum accepted request age in seconds
            protected_paths: Paths that require a valid Slack signature
            clock: Time source for the replay window check (tests only)
            **kwargs: Additional arguments (unused, but included for base class compatibility)

        Returns:
            Configured FastAPI server instance

        Raises:
            ValueError: If no signing secret is given
        """
        global _WEB_SERVER_INSTANCE
        assert _WEB_SERVER_INSTANCE is None, "It is not allowed to create more than one instance of web server."
        if not signing_secret:
            raise ValueError("SLACK_SIGNING_SECRET is required to create the webhook server")

        app = FastAPI(
            title="Slack Auto-Reply",
            description="Receives Slack Events API callbacks and answers bot mentions",
            version=__version__,
        )
        app.add_middleware(
            SlackRequestVerificationMiddleware,
            signing_secret=signing_secret,
            replay_window=replay_window,
            protected_paths=tuple(protected_paths),
            clock=clock,
        )
        _LOG.debug(f"Request verification enabled for {', '.join(protected_paths)} (window {replay_window}s)")

        _WEB_SERVER_INSTANCE = app
        return _WEB_SERVER_INSTANCE

    @staticmethod
    def get() -> FastAPI:
        """
        Get the web API server instance

        Returns:
            Configured FastAPI server instance
        """
        assert _WEB_SERVER_INSTANCE is not None, "It must be created web server first."
        return _WEB_SERVER_INSTANCE

    @staticmethod
    def reset() -> None:
        """
        Reset the singleton instance (for testing purposes).
        """
        global _WEB_SERVER_INSTANCE
        _WEB_SERVER_INSTANCE = None


web_factory: Final[Type[WebServerFactory]] = WebServerFactory
