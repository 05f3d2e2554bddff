"""Factory pattern implementation for creating Slack clients.

This module provides an abstract base class for client factories and concrete
implementations for plain and retrying async clients. It keeps client creation
out of the request path and lets tests substitute their own clients.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Final, Optional

from slack_sdk.http_retry.async_handler import AsyncRetryHandler
from slack_sdk.http_retry.builtin_async_handlers import (
    AsyncConnectionErrorRetryHandler,
    AsyncRateLimitErrorRetryHandler,
    AsyncServerErrorRetryHandler,
)
from slack_sdk.web.async_client import AsyncWebClient

from slack_autoreply.settings import get_settings

__all__: list[str] = [
    "SlackClientFactory",
    "DefaultSlackClientFactory",
    "RetryableSlackClientFactory",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


class SlackClientFactory(ABC):
    """Abstract base class for Slack client factories."""

    @abstractmethod
    def create_async_client(self, token: Optional[str] = None) -> AsyncWebClient:
        """Create and return an AsyncWebClient instance.

        Parameters
        ----------
        token : Optional[str], optional
            Slack token to use for authentication. If not provided, it is
            resolved from settings.

        Returns
        -------
        AsyncWebClient
            Initialized Slack AsyncWebClient instance.

        Raises
        ------
        ValueError
            If no token is supplied and none can be resolved from settings.
        """


class DefaultSlackClientFactory(SlackClientFactory):
    """Creates plain clients with no retry handlers."""

    def _resolve_token(self, token: Optional[str] = None) -> str:
        """Resolve the Slack token from provided value or settings.

        Raises
        ------
        ValueError
            If no token can be resolved
        """
        if token:
            return token
        token_secret = get_settings().slack_bot_token
        if token_secret is None:
            raise ValueError(
                "Slack token not found. Provide one via the 'token' argument or set "
                "the SLACK_BOT_TOKEN/SLACK_TOKEN environment variable."
            )
        return token_secret.get_secret_value()

    def create_async_client(self, token: Optional[str] = None) -> AsyncWebClient:
        return AsyncWebClient(token=self._resolve_token(token))


class RetryableSlackClientFactory(DefaultSlackClientFactory):
    """Creates clients that retry on connection errors, rate limits and 5xx responses.

    Parameters
    ----------
    max_retry_count : int
        Maximum retry attempts per handler (default: 3)
    """

    def __init__(self, max_retry_count: int = 3):
        if max_retry_count < 0:
            raise ValueError("Retry count must be non-negative")
        self.max_retry_count = max_retry_count

    def _retry_handlers(self) -> list[AsyncRetryHandler]:
        return [
            AsyncConnectionErrorRetryHandler(max_retry_count=self.max_retry_count),
            AsyncRateLimitErrorRetryHandler(max_retry_count=self.max_retry_count),
            AsyncServerErrorRetryHandler(max_retry_count=self.max_retry_count),
        ]

    def create_async_client(self, token: Optional[str] = None) -> AsyncWebClient:
        client = AsyncWebClient(token=self._resolve_token(token), retry_handlers=self._retry_handlers())
        _LOG.debug(f"Created Slack client with {len(client.retry_handlers)} retry handlers")
        return client
